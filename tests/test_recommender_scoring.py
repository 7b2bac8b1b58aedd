import math

import pytest

from hajj_advisor.catalog import sample_packages
from hajj_advisor.config import ScoringConfig
from hajj_advisor.errors import InvalidInputError
from hajj_advisor.recommender import (
    CLOSE_BUDGET_REASON,
    MAJR_CAPACITY_REASON,
    MUAISIM_REASON,
    SHIFTING_REASON,
    STRONG_MATCH_REASON,
    recommend_from_payload,
    recommend_packages,
)
from hajj_advisor.schemas import Budget, Preferences


def test_single_unconstrained_package_is_scored_on_value_and_budget(make_package, make_prefs):
    pkg = make_package(base_price_sar=25000, makkah_zone="A", mina_camp="muaisim", upgrade_fees=None)
    results = recommend_packages([pkg], make_prefs(amount=30000, headcount=1))

    assert len(results) == 1
    rec = results[0]
    assert rec.price.per_person == 25000
    assert rec.breakdown.preference_match == 0.0
    assert rec.breakdown.budget_fit == pytest.approx(25000 / 30000)
    assert rec.breakdown.value_quality == pytest.approx((0.6 + 1.0 + 0.2) / 3)
    assert rec.breakdown.scarcity_penalty == 0.0
    assert rec.total_score == pytest.approx(0.275)
    assert rec.reasons == [MUAISIM_REASON]


def test_premium_camp_pays_the_scarcity_penalty(make_package, make_prefs):
    premium = make_package(id="majr", mina_camp="majr", base_price_sar=20000)
    standard = make_package(id="muaisim", mina_camp="muaisim", base_price_sar=20000)
    results = {r.package.id: r for r in recommend_packages([premium, standard], make_prefs(amount=40000))}

    assert results["majr"].breakdown.scarcity_penalty == 0.15
    assert results["muaisim"].breakdown.scarcity_penalty == 0.0
    for rec in results.values():
        b = rec.breakdown
        expected = b.preference_match * 0.6 + b.value_quality * 0.25 + b.budget_fit * 0.15 - b.scarcity_penalty
        assert rec.total_score == pytest.approx(round(expected, 3))


def test_triple_request_uses_the_only_available_fee(make_package, make_prefs):
    pkg = make_package(
        base_price_sar=80000,
        upgrade_fees={"makkah": {"triple": 6000}, "madinah": {"triple": 0}, "aziziya": None},
    )
    results = recommend_packages([pkg], make_prefs(amount=100000, occupancy="triple"))

    assert len(results) == 1
    assert results[0].price.occupancy == "triple"
    assert results[0].price.per_person == 86000


def test_unavailable_occupancy_excludes_package(make_package, make_prefs):
    pkg = make_package(upgrade_fees={"makkah": {"double": 9000, "triple": 0}})
    assert recommend_packages([pkg], make_prefs(occupancy="triple")) == []
    assert len(recommend_packages([pkg], make_prefs(occupancy="double"))) == 1


def test_unpriced_packages_never_appear(make_package, make_prefs):
    free = make_package(id="free", base_price_sar=0)
    priced = make_package(id="priced")
    prefs = make_prefs(provider="Al Bait", makkah_zone="A", duration_days=15)

    ids = [r.package.id for r in recommend_packages([free, priced], prefs)]
    assert ids == ["priced"]


def test_majr_surcharge_is_included_for_every_tier(make_package, make_prefs):
    pkg = make_package(mina_camp="majr", base_price_sar=50000, upgrade_fees={"makkah": {"double": 5000, "triple": 2000}})
    for occupancy, upgrade in (("quad", 0), (None, 0), ("triple", 2000), ("double", 5000)):
        rec = recommend_packages([pkg], make_prefs(occupancy=occupancy))[0]
        assert rec.price.per_person == pytest.approx(50000 + 4673.42 + upgrade)


def test_reasons_follow_fixed_order(make_package, make_prefs):
    pkg = make_package(provider="Al Bait", mina_camp="majr", makkah_zone="A", is_shifting=True, base_price_sar=80000)
    prefs = make_prefs(amount=85000, provider="Al Bait", makkah_zone="A")
    rec = recommend_packages([pkg], prefs)[0]

    assert rec.reasons == [
        STRONG_MATCH_REASON,
        "Majr AlKabsh (includes +4673.42 SAR pp camp upgrade)",
        MAJR_CAPACITY_REASON,
        SHIFTING_REASON,
        CLOSE_BUDGET_REASON,
    ]


def test_ranking_is_descending_and_capped_at_five(make_package, make_prefs):
    catalog = [
        make_package(id=f"pkg-{i}", makkah_zone=zone, base_price_sar=20000 + 1000 * i)
        for i, zone in enumerate(["M", "C", "B", "A", "A", "B", "C"])
    ]
    results = recommend_packages(catalog, make_prefs(amount=30000, makkah_zone="A"))

    assert len(results) == 5
    scores = [r.total_score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert results[0].package.makkah_zone == "A"


def test_ties_keep_catalog_order(make_package, make_prefs):
    catalog = [make_package(id=f"twin-{i}") for i in range(3)]
    results = recommend_packages(catalog, make_prefs())
    assert [r.package.id for r in results] == ["twin-0", "twin-1", "twin-2"]


def test_recommendations_are_deterministic():
    catalog = sample_packages()
    prefs = Preferences(budget=Budget(amount=170000, headcount=2), first_stay="madinah", shifting=True)
    first = recommend_packages(catalog, prefs)
    second = recommend_packages(catalog, prefs)

    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
    assert len(first) <= min(5, len(catalog))


def test_empty_catalog_returns_empty_list(make_prefs):
    assert recommend_packages([], make_prefs()) == []


def test_missing_inputs_raise_invalid_input(make_package, make_prefs):
    with pytest.raises(InvalidInputError):
        recommend_packages(None, make_prefs())
    with pytest.raises(ValueError):
        recommend_packages([make_package()], None)


def test_provider_selection_filters_catalog_and_drops_provider_preference(make_package, make_prefs):
    catalog = [
        make_package(id="a", provider="Al Bait"),
        make_package(id="b", provider="Rawaf Mina"),
    ]
    results = recommend_packages(catalog, make_prefs(provider="Al Bait"), providers=["Rawaf Mina"])

    assert [r.package.id for r in results] == ["b"]
    assert results[0].breakdown.preference_match == 0.0


def test_top_n_comes_from_config(make_package, make_prefs):
    catalog = [make_package(id=f"pkg-{i}") for i in range(4)]
    results = recommend_packages(catalog, make_prefs(), config=ScoringConfig(top_n=2))
    assert len(results) == 2


def test_nan_budget_does_not_poison_scores(make_package, make_prefs):
    rec = recommend_packages([make_package()], make_prefs(amount=float("nan")))[0]
    assert rec.breakdown.budget_fit == 0.0
    assert math.isfinite(rec.total_score)


def test_recommend_from_payload_reports_exclusions():
    payload = {
        "packages": [pkg.model_dump(mode="json") for pkg in sample_packages()],
        "prefs": {"budget": {"budget_amount": 100000, "hujjaj_count": 1}, "occupancy": "double"},
    }
    response = recommend_from_payload(payload)

    # only p2 and p4 offer double rooms
    assert response.considered == 5
    assert response.excluded == 3
    assert {r.package.id for r in response.options} == {"p2", "p4"}


def test_recommend_from_payload_rejects_bad_payload():
    with pytest.raises(InvalidInputError):
        recommend_from_payload({"packages": [{"id": "broken"}]})
    with pytest.raises(InvalidInputError):
        recommend_from_payload(["not", "a", "dict"])  # type: ignore[arg-type]
