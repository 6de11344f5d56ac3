import copy

import pytest

from tagwire import Codec, CodecConfig, MissingRequiredFieldError, TaggedRecord, UnknownVariantError

from samples import VARIANT_SAMPLES


@pytest.fixture
def codec():
    return Codec(config=CodecConfig(revision="9.1"))


def test_samples_cover_every_variant_of_every_union(codec):
    expected = {
        (union_name, tag)
        for union_name, union in codec.schema.unions.items()
        for tag in union.variants
    }
    assert set(VARIANT_SAMPLES) == expected


@pytest.mark.parametrize("union_name,tag", sorted(VARIANT_SAMPLES))
def test_every_variant_round_trips(codec, union_name, tag):
    raw = VARIANT_SAMPLES[(union_name, tag)]

    value = codec.decode(union_name, raw)

    assert isinstance(value, TaggedRecord)
    assert value.union == union_name
    assert value.tag == tag
    assert codec.encode(value) == raw
    assert codec.decode(union_name, codec.encode(value)) == value


@pytest.mark.parametrize("union_name,tag", sorted(VARIANT_SAMPLES))
def test_removing_any_required_field_fails_naming_it(codec, union_name, tag):
    raw = VARIANT_SAMPLES[(union_name, tag)]
    record = codec.schema.record(codec.schema.union(union_name).variants[tag])

    for field_name in record.required_fields():
        broken = copy.deepcopy(raw)
        del broken[field_name]

        with pytest.raises(MissingRequiredFieldError) as exc:
            codec.decode(union_name, broken)

        assert exc.value.field == field_name
        assert exc.value.union == union_name
        assert exc.value.tag == tag


@pytest.mark.parametrize("union_name", ["RevenueWithdrawalState", "TransactionPartner", "OwnedGift", "StoryAreaType"])
def test_unknown_discriminant_fails_naming_the_tag(codec, union_name):
    with pytest.raises(UnknownVariantError) as exc:
        codec.decode(union_name, {"type": "introduced_next_year", "extra": 1})

    assert exc.value.tag == "introduced_next_year"
    assert exc.value.union == union_name
    assert "introduced_next_year" in str(exc.value)


def test_missing_discriminant_is_a_missing_required_field(codec):
    with pytest.raises(MissingRequiredFieldError) as exc:
        codec.decode("RevenueWithdrawalState", {"date": 1700000000, "url": "https://t.me/x"})

    assert exc.value.field == "type"
    assert exc.value.tag is None


def test_absent_optional_fields_stay_absent(codec):
    value = codec.decode("OwnedGift", VARIANT_SAMPLES[("OwnedGift", "unique")])

    assert "owned_gift_id" not in value
    assert value.get("owned_gift_id") is None
    with pytest.raises(AttributeError):
        value.owned_gift_id
    assert "owned_gift_id" not in codec.encode(value)
