from __future__ import annotations

from datetime import datetime, timedelta, timezone

from dinepick.recommendations.config import DEFAULT_PICKER_CONFIG
from dinepick.recommendations.data_store import (
    add_restaurant,
    delete_restaurant,
    find_restaurant_by_name,
    get_restaurant,
    get_restaurants,
    get_visits,
    load_seed,
    rate_visit,
    record_visit,
    reset_store,
    update_restaurant,
)
from dinepick.recommendations.models import RestaurantRecord, VisitRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _by_name(records, name):
    return next(r for r in records if r.name == name)


def test_seed_loads_all_rows():
    records = load_seed(DEFAULT_PICKER_CONFIG.seed_path, now=NOW)
    assert len(records) == 15
    assert len({r.id for r in records}) == 15


def test_seed_parses_multi_cuisine_and_blanks():
    records = load_seed(DEFAULT_PICKER_CONFIG.seed_path, now=NOW)
    taco = _by_name(records, "Taco Garage")
    assert taco.cuisines == ["Mexican", "Street Food"]
    assert taco.price_level == 1
    assert taco.last_visited is None
    assert taco.user_rating is None
    assert taco.is_new is True


def test_seed_last_visited_is_relative_to_now():
    records = load_seed(DEFAULT_PICKER_CONFIG.seed_path, now=NOW)
    sakura = _by_name(records, "Sakura Bento")
    assert sakura.last_visited == NOW - timedelta(days=3)
    assert sakura.visit_count == 12
    assert sakura.is_favorite is True
    assert sakura.user_rating == 1


def test_record_validators_clamp_values():
    record = RestaurantRecord(name="X", price_level=9, visit_count=-4, user_rating=5)
    assert record.price_level == 4
    assert record.visit_count == 0
    assert record.user_rating is None
    assert RestaurantRecord(name="Y", price_level=0).price_level == 1
    assert VisitRecord(restaurant_id="r", date=NOW, rating=-1).rating == -1


def test_store_seeds_lazily():
    reset_store()
    assert len(get_restaurants()) == 15


def test_empty_store():
    reset_store(seed=False)
    assert get_restaurants() == []
    reset_store()


def test_find_by_name_ignores_case_and_padding():
    reset_store()
    found = find_restaurant_by_name("  golden WOK ")
    assert found is not None
    assert found.name == "Golden Wok"
    assert find_restaurant_by_name("Nowhere") is None


def test_add_update_delete():
    reset_store(seed=False)
    record = add_restaurant(RestaurantRecord(name="Night Market", cuisines=["Taiwanese"]))
    assert get_restaurant(record.id) == record

    updated = update_restaurant(record.id, {"price_level": 7, "is_favorite": True})
    assert updated.price_level == 4
    assert updated.is_favorite is True
    assert update_restaurant("missing", {"name": "Z"}) is None

    assert delete_restaurant(record.id) is True
    assert delete_restaurant(record.id) is False
    assert get_restaurant(record.id) is None
    reset_store()


def test_record_visit_updates_history():
    reset_store()
    patty = find_restaurant_by_name("Patty Lab")
    visit = record_visit(patty.id, when=NOW)

    assert visit.restaurant_id == patty.id
    updated = get_restaurant(patty.id)
    assert updated.last_visited == NOW
    assert updated.visit_count == 1
    assert updated.is_new is False
    assert record_visit("missing") is None


def test_visits_are_most_recent_first():
    reset_store()
    wok = find_restaurant_by_name("Golden Wok")
    record_visit(wok.id, when=NOW - timedelta(days=2))
    record_visit(wok.id, when=NOW)
    record_visit(wok.id, when=NOW - timedelta(days=1))
    dates = [v.date for v in get_visits()]
    assert dates == sorted(dates, reverse=True)


def test_rating_syncs_to_latest_rated_visit():
    reset_store()
    bowl = find_restaurant_by_name("Harvest Bowl")
    older = record_visit(bowl.id, when=NOW - timedelta(days=5))
    newer = record_visit(bowl.id, when=NOW)

    rate_visit(older.id, -1)
    assert get_restaurant(bowl.id).user_rating == -1

    rate_visit(newer.id, 1)
    assert get_restaurant(bowl.id).user_rating == 1

    # re-rating the older visit does not override the newer one
    rate_visit(older.id, 0)
    assert get_restaurant(bowl.id).user_rating == 1
    assert rate_visit("missing", 1) is None
