import pytest

from llm_relay.models import (
    FlatPerImagePrice,
    FlatTokenPricing,
    PerImagePricing,
    PriceTier,
    ReasoningTokenPricing,
    TieredTokenPricing,
)
from llm_relay.pricing import (
    PricingLookupError,
    calculate_millicredits,
    flat_token_cost,
    per_image_cost,
    reasoning_token_cost,
    select_tier,
    tiered_token_cost,
)

MILLION = 1_000_000


@pytest.mark.parametrize(
    "cost, price_per_credit, expected",
    [
        (0.1, 0.01, 10000),
        (0.01, 0.01, 1000),
        (0.001, 0.01, 100),
        (0.0001, 0.01, 10),
        (0.00001, 0.01, 1),
        (0.000001, 0.01, 1),
        (0.0000001, 0.01, 1),
        (1, 0.01, 100000),
        (10, 0.01, 1000000),
        (0.1, 0.02, 5000),
        (0.01, 0.02, 500),
        (0.0001, 0.02, 5),
        (0.00001, 0.02, 1),
        (1, 0.02, 50000),
        (0.05, 0.005, 10000),
        (0.05, 0.05, 1000),
        (0.05, 0.1, 500),
    ],
)
def test_calculate_millicredits(cost, price_per_credit, expected):
    assert calculate_millicredits(cost, price_per_credit) == expected


def test_calculate_millicredits_zero_cost_and_zero_price():
    assert calculate_millicredits(0, 0.01) == 0
    assert calculate_millicredits(0, 0) == 0
    assert calculate_millicredits(1, 0) == 0


def test_calculate_millicredits_accepts_string_price():
    assert calculate_millicredits(0.1, "0.01") == 10000


def test_flat_token_cost_basic():
    pricing = FlatTokenPricing(3.00, 15.00)
    cost = flat_token_cost(pricing, MILLION, input_tokens=1000, output_tokens=500)
    assert cost == pytest.approx(0.0105)


def test_flat_token_cost_cached_tokens_fall_back_to_input_rate():
    pricing = FlatTokenPricing(2.00, 8.00)
    split = flat_token_cost(
        pricing, MILLION, input_tokens=600, output_tokens=0, cached_input_tokens=400
    )
    whole = flat_token_cost(pricing, MILLION, input_tokens=1000, output_tokens=0)
    assert split == pytest.approx(whole)


def test_flat_token_cost_image_tokens_only_billed_when_priced():
    unpriced = FlatTokenPricing(2.00, 10.00)
    priced = FlatTokenPricing(2.00, 10.00, image_input_per_unit=2.00)
    assert flat_token_cost(
        unpriced, MILLION, input_tokens=0, output_tokens=0, image_input_tokens=1000
    ) == 0
    assert flat_token_cost(
        priced, MILLION, input_tokens=0, output_tokens=0, image_input_tokens=1000
    ) == pytest.approx(0.002)


def test_flat_token_cost_ignores_negative_and_missing_counts():
    pricing = FlatTokenPricing(1.00, 1.00)
    assert flat_token_cost(pricing, MILLION, input_tokens=-5, output_tokens=None) == 0


def test_select_tier_picks_smallest_covering_bound():
    tiers = (PriceTier(None, 3.0), PriceTier(200_000, 2.0), PriceTier(128_000, 1.0))
    assert select_tier(tiers, 1000).price == 1.0
    assert select_tier(tiers, 128_000).price == 1.0
    assert select_tier(tiers, 128_001).price == 2.0
    assert select_tier(tiers, 500_000).price == 3.0


def test_select_tier_without_unbounded_tier_uses_last():
    tiers = (PriceTier(10, 1.0), PriceTier(20, 2.0))
    assert select_tier(tiers, 50).price == 2.0


def test_select_tier_empty_raises():
    with pytest.raises(PricingLookupError):
        select_tier((), 1)


def test_tiered_cost_selects_tier_per_category():
    pricing = TieredTokenPricing(
        prompt_tiers=(PriceTier(128_000, 1.25), PriceTier(None, 2.50)),
        candidate_tiers=(PriceTier(128_000, 5.00), PriceTier(None, 10.00)),
    )
    cost = tiered_token_cost(
        pricing, MILLION, prompt_tokens=200_000, candidate_tokens=1000
    )
    # Prompt lands in the upper tier, candidates stay in the lower one.
    assert cost == pytest.approx(200_000 * 2.50 / MILLION + 1000 * 5.00 / MILLION)


def test_tiered_cost_bills_cached_tokens_once():
    pricing = TieredTokenPricing(
        prompt_tiers=(PriceTier(None, 1.00),),
        candidate_tiers=(PriceTier(None, 4.00),),
        cache_tiers=(PriceTier(None, 0.25),),
    )
    cost = tiered_token_cost(
        pricing, MILLION, prompt_tokens=1000, candidate_tokens=0, cached_tokens=400
    )
    assert cost == pytest.approx(600 * 1.00 / MILLION + 400 * 0.25 / MILLION)


def test_per_image_cost_defaults_quality_size_and_count():
    pricing = PerImagePricing({"standard": {"1024x1024": 0.04}, "hd": {"1024x1024": 0.08}})
    assert per_image_cost(pricing) == pytest.approx(0.04)
    assert per_image_cost(pricing, count=3, quality="hd") == pytest.approx(0.24)


def test_per_image_cost_unknown_size_raises():
    pricing = PerImagePricing({"standard": {"1024x1024": 0.04}})
    with pytest.raises(PricingLookupError):
        per_image_cost(pricing, size="4096x4096")
    with pytest.raises(PricingLookupError):
        per_image_cost(pricing, quality="ultra")


def test_flat_per_image_price_multiplies_count():
    assert per_image_cost(FlatPerImagePrice(0.07), count=2) == pytest.approx(0.14)


def test_reasoning_cost_adds_flat_fee_and_reasoning_tokens():
    pricing = ReasoningTokenPricing(2.00, 8.00, reasoning_per_unit=3.00, per_request_flat=0.005)
    without = reasoning_token_cost(pricing, MILLION, input_tokens=1000, output_tokens=1000)
    with_reasoning = reasoning_token_cost(
        pricing, MILLION, input_tokens=1000, output_tokens=1000, reasoning_tokens=1000
    )
    assert without == pytest.approx(0.002 + 0.008 + 0.005)
    assert with_reasoning == pytest.approx(without + 0.003)


def test_costs_are_monotonic_in_token_counts():
    flat = FlatTokenPricing(1.0, 2.0, cached_input_per_unit=0.5)
    tiered = TieredTokenPricing(
        prompt_tiers=(PriceTier(100, 1.0), PriceTier(None, 2.0)),
        candidate_tiers=(PriceTier(None, 3.0),),
    )
    previous_flat = previous_tiered = -1.0
    for tokens in (0, 1, 50, 100, 101, 1000, 10_000):
        flat_cost = flat_token_cost(flat, MILLION, input_tokens=tokens, output_tokens=tokens)
        tiered_cost = tiered_token_cost(
            tiered, MILLION, prompt_tokens=tokens, candidate_tokens=tokens
        )
        assert flat_cost >= previous_flat
        assert tiered_cost >= previous_tiered
        assert flat_cost >= 0 and tiered_cost >= 0
        previous_flat, previous_tiered = flat_cost, tiered_cost
