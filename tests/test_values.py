from types import MappingProxyType

import pytest

from tagwire import Record, TaggedRecord, UnrecognizedVariant
from tagwire.core.values import freeze, thaw


def test_record_fields_are_deeply_read_only():
    source = {"entities": [{"type": "bold"}], "text": "hi"}

    record = Record(type_name="Checklist", fields=source)
    source["text"] = "changed"

    assert record.text == "hi"
    assert isinstance(record.fields, MappingProxyType)
    assert isinstance(record.entities, tuple)
    with pytest.raises(TypeError):
        record.entities[0]["type"] = "italic"


def test_record_access_helpers():
    record = Record(type_name="LabeledPrice", fields={"label": "Total", "amount": 5})

    assert record["amount"] == 5
    assert "label" in record
    assert list(record) == ["label", "amount"]
    assert record.get("missing", 0) == 0
    assert not record.has("missing")
    with pytest.raises(AttributeError, match="LabeledPrice has no field 'missing'"):
        record.missing


def test_tagged_record_equality_includes_tag():
    a = TaggedRecord(type_name="RevenueWithdrawalStatePending", union="RevenueWithdrawalState", tag="pending")
    b = TaggedRecord(type_name="RevenueWithdrawalStatePending", union="RevenueWithdrawalState", tag="pending")
    c = TaggedRecord(type_name="RevenueWithdrawalStatePending", union="RevenueWithdrawalState", tag="failed")

    assert a == b
    assert a != c
    assert repr(a) == "RevenueWithdrawalState['pending']:RevenueWithdrawalStatePending()"


def test_record_repr_lists_extra_keys():
    record = Record(type_name="StarAmount", fields={"amount": 1}, extra={"future": True})

    assert repr(record) == "StarAmount(amount=1, extra={'future'})"


def test_unrecognized_variant_freezes_raw_payload():
    raw = {"type": "moon_base", "fees": [1, 2]}

    value = UnrecognizedVariant(union="TransactionPartner", tag="moon_base", raw=raw)

    assert value.raw["fees"] == (1, 2)
    assert thaw(value.raw) == raw


def test_freeze_leaves_records_alone():
    record = Record(type_name="StarAmount", fields={"amount": 1})

    assert freeze([record])[0] is record
    assert freeze({"a": [1, {"b": 2}]}) == {"a": (1, {"b": 2})}


def test_values_are_unhashable_but_comparable():
    record = Record(type_name="StarAmount", fields={"amount": 1})
    tagged = TaggedRecord(type_name="RevenueWithdrawalStatePending", union="RevenueWithdrawalState", tag="pending")
    unknown = UnrecognizedVariant(union="OwnedGift", tag="legendary")

    for value in (record, tagged, unknown):
        with pytest.raises(TypeError, match="unhashable"):
            hash(value)

    assert record == Record(type_name="StarAmount", fields={"amount": 1})
