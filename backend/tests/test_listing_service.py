import pytest

from portfolio.core.errors import InvalidQuery
from portfolio.schemas.enums import EntityKind
from portfolio.services.listing_service import list_records, normalize_paging, parse_filters
from portfolio.services.record_store import ALL, RecordFilter, RecordStore


def _seed_inquiries(add_inquiry, count=5):
    return [add_inquiry(name=f"Client {i}", days_ago=count - i) for i in range(count)]


def test_page_two_of_five_records(db, add_inquiry):
    _seed_inquiries(add_inquiry)

    page = list_records(db, EntityKind.INQUIRY, page=2, page_size=2)

    assert len(page.items) == 2
    assert page.total_count == 5
    assert page.page_count == 3
    assert page.current_page == 2
    assert page.page_size == 2


def test_pages_concatenate_to_unpaginated_fetch(db, add_inquiry):
    _seed_inquiries(add_inquiry, count=7)

    everything = list_records(db, EntityKind.INQUIRY, page=1, page_size=100)
    paged = []
    for number in range(1, 4):
        paged.extend(list_records(db, EntityKind.INQUIRY, page=number, page_size=3).items)

    assert [r.id for r in paged] == [r.id for r in everything.items]


def test_newest_first_ordering(db, add_inquiry):
    oldest = add_inquiry(name="Oldest", days_ago=10)
    newest = add_inquiry(name="Newest", days_ago=1)
    middle = add_inquiry(name="Middle", days_ago=5)

    page = list_records(db, EntityKind.INQUIRY)

    assert [r.id for r in page.items] == [newest.id, middle.id, oldest.id]


def test_equal_timestamps_fall_back_to_id_descending(db, add_inquiry, now):
    same = [add_inquiry(name=f"Twin {i}", created_at=now) for i in range(3)]

    page = list_records(db, EntityKind.INQUIRY)

    assert [r.id for r in page.items] == sorted((r.id for r in same), key=str, reverse=True)


def test_total_matches_store_count_for_same_predicate(db, add_inquiry):
    add_inquiry(status="new", company="Acme Corp")
    add_inquiry(status="new", company="Globex")
    add_inquiry(status="closed", company="Acme Labs")
    add_inquiry(status="new", name="ACME fan", company=None)

    page = list_records(db, EntityKind.INQUIRY, {"status": "new"}, search="acme", page_size=1)
    direct = RecordStore(db, EntityKind.INQUIRY).count(RecordFilter(equals={"status": "new"}, search="acme"))

    assert page.total_count == direct == 2
    assert page.page_count == 2


def test_search_is_case_insensitive_and_literal(db, add_inquiry):
    add_inquiry(company="100% Digital")
    add_inquiry(company="1000 Digital")

    assert list_records(db, EntityKind.INQUIRY, search="100%").total_count == 1
    assert list_records(db, EntityKind.INQUIRY, search="DIGITAL").total_count == 2
    assert list_records(db, EntityKind.INQUIRY, search="   ").total_count == 2


def test_search_spans_case_study_fields(db, add_case_study):
    add_case_study(title="Banking app")
    add_case_study(client_company="Northwind Banking")
    add_case_study(title="Recipe site", description="Cooking")

    assert list_records(db, EntityKind.CASE_STUDY, search="banking").total_count == 2


def test_bool_and_enum_filters(db, add_case_study):
    add_case_study(featured=True, category="web", type="web")
    add_case_study(featured=False, category="web", type="pwa")
    add_case_study(featured=True, category="mobile")

    assert list_records(db, EntityKind.CASE_STUDY, {"featured": "true"}).total_count == 2
    assert list_records(db, EntityKind.CASE_STUDY, {"featured": "0", "category": "web"}).total_count == 1
    assert list_records(db, EntityKind.CASE_STUDY, {"type": "pwa"}).total_count == 1


def test_testimonial_rating_filter(db, add_testimonial):
    add_testimonial(rating=5)
    add_testimonial(rating=4)

    assert list_records(db, EntityKind.TESTIMONIAL, {"rating": "4"}).total_count == 1
    with pytest.raises(InvalidQuery):
        list_records(db, EntityKind.TESTIMONIAL, {"rating": "7"})


def test_unknown_keys_are_ignored():
    assert parse_filters(EntityKind.INQUIRY, {"colour": "blue", "page": "2", "status": ""}) == {}


@pytest.mark.parametrize(
    "params",
    [
        {"status": "archived"},
        {"priority": "critical"},
    ],
)
def test_out_of_domain_enum_filter_is_invalid_query(params):
    with pytest.raises(InvalidQuery):
        parse_filters(EntityKind.INQUIRY, params)


def test_non_boolean_flag_is_invalid_query():
    with pytest.raises(InvalidQuery):
        parse_filters(EntityKind.CASE_STUDY, {"featured": "maybe"})


def test_paging_normalisation():
    assert normalize_paging(0, None) == (1, 20)
    assert normalize_paging("-3", "500") == (1, 100)
    assert normalize_paging("2", "5") == (2, 5)
    with pytest.raises(InvalidQuery):
        normalize_paging(1, 0)
    with pytest.raises(InvalidQuery):
        normalize_paging("two", 10)


def test_empty_collection(db):
    page = list_records(db, EntityKind.TESTIMONIAL)

    assert page.items == []
    assert page.total_count == 0
    assert page.page_count == 0
    assert page.current_page == 1


def test_base_filters_hide_private_records(db, add_case_study):
    add_case_study(is_public=True)
    add_case_study(is_public=False)

    assert list_records(db, EntityKind.CASE_STUDY, base_filters={"is_public": True}).total_count == 1


def test_unsupported_store_field_is_a_programming_error(db):
    store = RecordStore(db, EntityKind.INQUIRY)
    with pytest.raises(ValueError):
        store.count(ALL.narrowed(email="jane@example.com"))
    with pytest.raises(ValueError):
        store.group_count("name")


def test_page_beyond_addressable_offset_is_invalid_query(db, add_inquiry):
    add_inquiry()

    with pytest.raises(InvalidQuery):
        list_records(db, EntityKind.INQUIRY, page=10**20, page_size=20)


def test_column_values_only_for_listable_fields(db, add_case_study):
    add_case_study(tags=["react"])
    store = RecordStore(db, EntityKind.CASE_STUDY)

    assert store.column_values("tags") == [["react"]]
    with pytest.raises(ValueError):
        store.column_values("client_name")
