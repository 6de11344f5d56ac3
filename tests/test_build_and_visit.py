import pytest

import tagwire
from tagwire import (
    Codec,
    CodecConfig,
    MissingRequiredFieldError,
    RangeViolationError,
    TaggedRecord,
    TypeMismatchError,
    UnknownVariantError,
    UnrecognizedVariant,
)
from tagwire.codec.codec import set_default_codec
from tagwire.core.exceptions import SchemaError

from samples import USER


@pytest.fixture
def codec():
    return Codec(config=CodecConfig(revision="9.1"))


def teardown_function() -> None:
    set_default_codec(None)


def _describe_state(codec, state):
    return codec.visit(
        state,
        {
            "pending": lambda s: "pending",
            "succeeded": lambda s: f"paid out at {s.date}",
            "failed": lambda s: "refunded",
        },
        fallback=lambda raw: f"unknown:{raw.tag}",
    )


def test_build_tagged_value_encodes_with_discriminator_first(codec):
    state = codec.build("RevenueWithdrawalState", "succeeded", date=1700000000, url="https://t.me/x")

    assert isinstance(state, TaggedRecord)
    assert list(codec.encode(state)) == ["type", "date", "url"]


def test_build_treats_none_and_false_flags_as_absent(codec):
    payment = codec.build(
        "SuccessfulPayment",
        currency="XTR",
        total_amount=100,
        invoice_payload="sub",
        telegram_payment_charge_id="tg-1",
        provider_payment_charge_id="",
        is_recurring=False,
        subscription_expiration_date=None,
    )

    encoded = codec.encode(payment)
    assert "is_recurring" not in encoded
    assert "subscription_expiration_date" not in encoded


def test_build_keeps_false_for_plain_booleans(codec):
    checklist = codec.build(
        "InputChecklist",
        title="Groceries",
        tasks=[codec.build("InputChecklistTask", id=1, text="Milk")],
        others_can_add_tasks=False,
    )

    assert codec.encode(checklist)["others_can_add_tasks"] is False


def test_build_validates_immediately(codec):
    with pytest.raises(MissingRequiredFieldError) as exc:
        codec.build("RevenueWithdrawalState", "succeeded", date=1700000000)
    assert exc.value.field == "url"

    with pytest.raises(RangeViolationError):
        codec.build("StarAmount", amount=1, nanostar_amount=1000000000)

    with pytest.raises(TypeMismatchError):
        codec.build("TransactionPartner", "telegram_api", request_count="3")


def test_build_rejects_undeclared_fields(codec):
    with pytest.raises(TypeMismatchError) as exc:
        codec.build("TransactionPartner", "other", colour="blue")

    assert exc.value.field == "colour"


def test_build_requires_a_known_tag_for_unions(codec):
    with pytest.raises(SchemaError, match="variant tag is required"):
        codec.build("TransactionPartner", user=USER)

    with pytest.raises(UnknownVariantError):
        codec.build("TransactionPartner", "moon_base")

    with pytest.raises(SchemaError, match="takes no variant tag"):
        codec.build("StarAmount", "x", amount=1)


def test_built_nested_values_encode_like_decoded_ones(codec):
    raw = {
        "type": "fragment",
        "withdrawal_state": {"type": "succeeded", "date": 1700000000, "url": "https://t.me/x"},
    }
    built = codec.build(
        "TransactionPartner",
        "fragment",
        withdrawal_state=codec.build("RevenueWithdrawalState", "succeeded", date=1700000000, url="https://t.me/x"),
    )

    assert codec.encode(built) == raw
    assert codec.decode("TransactionPartner", raw) == built


def test_encode_rejects_a_variant_of_the_wrong_union(codec):
    state = codec.build("RevenueWithdrawalState", "pending")

    with pytest.raises(TypeMismatchError):
        codec.build("TransactionPartner", "fragment", withdrawal_state=codec.build("TransactionPartner", "other"))
    with pytest.raises(TypeError):
        codec.encode({"type": "pending"})
    assert codec.encode(state) == {"type": "pending"}


def test_visit_dispatches_on_tag(codec):
    state = codec.decode("RevenueWithdrawalState", {"type": "succeeded", "date": 5, "url": "u"})

    assert _describe_state(codec, state) == "paid out at 5"


def test_visit_requires_exhaustive_handlers(codec):
    state = codec.build("RevenueWithdrawalState", "pending")

    with pytest.raises(SchemaError, match="missing=\\['failed'\\]"):
        codec.visit(state, {"pending": lambda s: 1, "succeeded": lambda s: 2})

    with pytest.raises(SchemaError, match="unknown=\\['reversed'\\]"):
        codec.visit(
            state,
            {"pending": lambda s: 1, "succeeded": lambda s: 2, "failed": lambda s: 3, "reversed": lambda s: 4},
        )


def test_visit_routes_unrecognized_variants_to_fallback():
    codec = Codec(config=CodecConfig(revision="9.1", unknown_variant="allow"))
    state = codec.decode("RevenueWithdrawalState", {"type": "reversed"})

    assert isinstance(state, UnrecognizedVariant)
    assert _describe_state(codec, state) == "unknown:reversed"

    with pytest.raises(UnknownVariantError):
        codec.visit(state, {"pending": lambda s: 1, "succeeded": lambda s: 2, "failed": lambda s: 3})


def test_encode_json_and_decode_json(codec):
    text = codec.encode_json(codec.build("StoryAreaType", "unique_gift", name="PlushPepe-12"))

    assert text == '{"type": "unique_gift", "name": "PlushPepe-12"}'
    assert codec.decode_json("StoryAreaType", text).name == "PlushPepe-12"


def test_unknown_type_name_is_a_schema_error(codec):
    with pytest.raises(SchemaError, match="Unknown type 'Wallet'"):
        codec.decode("Wallet", {})


def test_module_level_helpers_use_newest_revision():
    value = tagwire.decode("TransactionPartner", {"type": "telegram_api", "request_count": 1})

    assert tagwire.get_default_codec().revision == "9.1"
    assert tagwire.encode(value) == {"type": "telegram_api", "request_count": 1}


def test_default_codec_can_be_replaced():
    legacy = Codec(config=CodecConfig(revision="7.10"))
    set_default_codec(legacy)

    assert tagwire.get_default_codec() is legacy
    with pytest.raises(UnknownVariantError):
        tagwire.decode("TransactionPartner", {"type": "telegram_api", "request_count": 1})


def test_default_codec_requires_transaction_type_for_user_partners():
    bare = {"type": "user", "user": USER}

    with pytest.raises(MissingRequiredFieldError, match="transaction_type"):
        tagwire.decode("TransactionPartner", bare)

    set_default_codec(Codec(config=CodecConfig(revision="7.10")))
    assert tagwire.encode(tagwire.decode("TransactionPartner", bare)) == bare
