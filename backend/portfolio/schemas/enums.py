from enum import Enum


class InquiryStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CLOSED = "closed"


class InquiryPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class InquiryProjectType(str, Enum):
    MOBILE = "mobile"
    WEB = "web"
    BOTH = "both"
    CONSULTATION = "consultation"
    OTHER = "other"


class InquiryBudget(str, Enum):
    UNDER_10K = "under-10k"
    FROM_10K_TO_50K = "10k-50k"
    FROM_50K_TO_100K = "50k-100k"
    OVER_100K = "100k-plus"
    FLEXIBLE = "flexible"
    CONFIDENTIAL = "confidential"


class InquiryTimeline(str, Enum):
    ASAP = "asap"
    ONE_MONTH = "1-month"
    TWO_TO_THREE_MONTHS = "2-3-months"
    THREE_TO_SIX_MONTHS = "3-6-months"
    OVER_SIX_MONTHS = "6-months-plus"
    FLEXIBLE = "flexible"


class InquirySource(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL = "social"
    EMAIL = "email"
    PHONE = "phone"
    OTHER = "other"


class CaseStudyStatus(str, Enum):
    PLANNING = "planning"
    DEVELOPMENT = "development"
    TESTING = "testing"
    COMPLETED = "completed"
    MAINTENANCE = "maintenance"


class CaseStudyCategory(str, Enum):
    MOBILE = "mobile"
    WEB = "web"
    BOTH = "both"
    CONSULTATION = "consultation"


class CaseStudyType(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"
    PWA = "pwa"
    CROSS_PLATFORM = "cross-platform"


class CaseStudyBudget(str, Enum):
    UNDER_10K = "under-10k"
    FROM_10K_TO_50K = "10k-50k"
    FROM_50K_TO_100K = "50k-100k"
    OVER_100K = "100k-plus"
    CONFIDENTIAL = "confidential"


class EntityKind(str, Enum):
    INQUIRY = "inquiries"
    CASE_STUDY = "case-studies"
    TESTIMONIAL = "testimonials"
