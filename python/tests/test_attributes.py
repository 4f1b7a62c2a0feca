"""
Tests for cecanon.attributes — attribute names and transport prefixes.
"""

from cecanon.attributes import CloudEventAttributes, CloudEventSpanAttributes, Prefix


class TestPrefix:
    """The closed set of transport prefixes."""

    def test_values(self):
        assert Prefix.NONE.value == ""
        assert Prefix.CANONICAL.value == "ce-"
        assert Prefix.KAFKA.value == "ce_"
        assert Prefix.AMQP.value == "cloudEvents:"

    def test_recognized_excludes_none(self):
        assert Prefix.recognized() == (Prefix.CANONICAL, Prefix.KAFKA, Prefix.AMQP)

    def test_key(self):
        assert Prefix.KAFKA.key("source") == "ce_source"
        assert Prefix.NONE.key("source") == "source"


class TestCanonicalAttributes:
    """Canonical keys are the bare names under ce-."""

    def test_all_keys_use_canonical_prefix(self):
        for name in dir(CloudEventAttributes):
            if not name.endswith("_NAME"):
                continue
            key_name = name[: -len("_NAME")]
            bare = getattr(CloudEventAttributes, name)
            assert getattr(CloudEventAttributes, key_name) == "ce-" + bare, (
                f"CloudEventAttributes.{key_name} is not the canonical form of {bare!r}"
            )

    def test_ten_attributes(self):
        names = {
            getattr(CloudEventAttributes, n)
            for n in dir(CloudEventAttributes)
            if n.endswith("_NAME") and n != "DATA_BASE64_NAME"
        }
        assert names == {
            "data", "id", "source", "specversion", "type",
            "datacontenttype", "dataschema", "schemaurl", "subject", "time",
        }

    def test_detection_attributes(self):
        assert CloudEventAttributes.REQUIRED_FOR_DETECTION == (
            "ce-specversion", "ce-type", "ce-source",
        )


class TestSpanAttributes:
    """Span attribute names follow OTel naming conventions."""

    def test_semantic_attributes_in_cloudevents_namespace(self):
        for name in ("EVENT_ID", "EVENT_SOURCE", "EVENT_SPEC_VERSION", "EVENT_TYPE", "EVENT_SUBJECT"):
            value = getattr(CloudEventSpanAttributes, name)
            assert value.startswith("cloudevents.")
            assert value == value.lower()
            assert " " not in value and "-" not in value
