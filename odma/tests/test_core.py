import pytest

from odma.errors import AccessDeniedError, OdmaError, PropertyNotFoundError, UnsupportedOperationError
from odma.names import OdmaId, OdmaQName
from odma.tests.records import build, class_record, obj, page, prop


def partial_owner(*props):
    return obj("owner", props=props)


class TestGetProperty:
    def test_cached_property_needs_no_fetch(self, factory, transport):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))
        assert entity.get_property("t:a").value == "x"
        assert entity.get_property(OdmaQName("t", "a")).value == "x"
        assert transport.calls == []

    def test_partial_entity_looks_up_unknown_names(self, factory, transport):
        transport.add(partial_owner(prop("t:b", "STRING", "y")))
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))

        assert entity.get_property("t:b").value == "y"
        assert transport.calls == [("owner", "t:b")]
        assert entity.core.is_cached("t:b")

    def test_partial_entity_raises_when_server_lacks_the_name(self, factory, transport):
        transport.add(partial_owner())
        entity = build(factory, partial_owner())

        with pytest.raises(PropertyNotFoundError) as exc:
            entity.get_property("t:nope")
        assert exc.value.name == OdmaQName("t", "nope")
        assert exc.value.object_id == OdmaId("owner")
        assert len(transport.calls) == 1

    def test_complete_entity_never_fetches_for_unknown_names(self, factory, transport):
        entity = build(factory, obj("owner", complete=True))
        with pytest.raises(PropertyNotFoundError):
            entity.get_property("t:nope")
        assert transport.calls == []


class TestPrepareProperties:
    def test_complete_entity_prepare_all_is_a_no_op(self, factory, transport):
        entity = build(factory, obj("owner", props=(prop("t:a", "STRING", "x"),), complete=True))
        entity.prepare_properties()
        assert transport.calls == []

    def test_complete_entity_refresh_refetches_everything(self, factory, transport):
        transport.add(obj("owner", props=(prop("t:a", "STRING", "new"),), complete=True))
        entity = build(factory, obj("owner", props=(prop("t:a", "STRING", "old"),), complete=True))

        entity.prepare_properties(refresh=True)

        assert transport.calls == [("owner", "*:*")]
        assert entity.get_property("t:a").value == "new"

    def test_partial_entity_prepare_all_fetches_everything(self, factory, transport):
        transport.add(obj("owner", props=(prop("t:a", "STRING", "x"), prop("t:b", "STRING", "y")), complete=True))
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))
        assert not entity.core.complete

        entity.prepare_properties()

        assert transport.calls == [("owner", "*:*")]
        assert entity.core.complete
        assert set(entity.core.property_names) == {OdmaQName("t", "a"), OdmaQName("t", "b")}

    def test_cached_names_need_no_fetch(self, factory, transport):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x"), prop("t:b", "STRING", "y")))
        entity.prepare_properties(["t:a", "t:b"])
        assert transport.calls == []

    def test_only_missing_names_are_requested(self, factory, transport):
        transport.add(partial_owner(prop("t:c", "STRING", "z")))
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))

        entity.prepare_properties(["t:a", "t:c"])

        assert transport.calls == [("owner", "t:c")]

    def test_refresh_requests_every_named_property(self, factory, transport):
        transport.add(partial_owner(prop("t:a", "STRING", "x2"), prop("t:b", "STRING", "y2")))
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x"), prop("t:b", "STRING", "y")))

        entity.prepare_properties(["t:a", "t:b"], refresh=True)

        assert transport.calls == [("owner", "t:a;t:b")]
        assert entity.get_property("t:a").value == "x2"
        assert entity.get_property("t:b").value == "y2"

    def test_fetched_properties_overwrite_cached_ones(self, factory, transport):
        transport.add(partial_owner(prop("t:a", "STRING", "new")))
        entity = build(factory, partial_owner(prop("t:a", "STRING", "old"), prop("t:keep", "STRING", "k")))

        entity.prepare_properties(["t:a"], refresh=True)

        assert entity.get_property("t:a").value == "new"
        assert entity.get_property("t:keep").value == "k"

    def test_partial_response_leaves_entity_partial(self, factory, transport):
        transport.add(partial_owner(prop("t:b", "STRING", "y")))
        entity = build(factory, partial_owner())
        entity.prepare_properties(["t:b"])
        assert not entity.core.complete


class TestReferences:
    def test_id_only_reference_is_fetched_once_with_defaults(self, factory, transport):
        transport.add(obj("target", props=(prop("t:name", "STRING", "tgt"),)))
        entity = build(factory, partial_owner(prop("t:ref", "REFERENCE", {"id": "target"})))

        ref = entity.get_property("t:ref")
        assert ref.reference_id == OdmaId("target")
        assert transport.calls == []

        assert ref.value.get_property("t:name").value == "tgt"
        assert ref.value.id == OdmaId("target")
        assert transport.calls == [("target", "default")]

    def test_inline_reference_needs_no_fetch(self, factory, transport):
        inline = obj("target", props=(prop("t:name", "STRING", "tgt"),))
        entity = build(factory, partial_owner(prop("t:ref", "REFERENCE", inline)))

        assert entity.get_property("t:ref").value.get_property("t:name").value == "tgt"
        assert entity.get_property("t:ref").reference_id == OdmaId("target")
        assert transport.calls == []


@pytest.fixture
def hierarchy(transport):
    transport.add(class_record("cls-base", "x", "Base"))
    transport.add(class_record("cls-doc", "x", "Doc", super_class="cls-base", included_aspects=("asp-signed",)))
    transport.add(class_record("asp-signed", "x", "Signed"))
    transport.add(class_record("asp-extra", "x", "Extra"))


def typed_entity(cls_id, aspect_ids=()):
    props = [prop("opendma:Class", "REFERENCE", cls_id, resolved=False)]
    props.append(prop("opendma:Aspects", "REFERENCE", page([{"id": a} for a in aspect_ids]), multi=True))
    return obj("doc1", "x:Doc", tuple(props), complete=True)


class TestInstanceOf:
    @pytest.mark.parametrize(
        "target",
        ["x:Doc", "x:Base", "x:Signed", "x:Extra", OdmaQName("x", "Base")],
    )
    def test_matches(self, factory, hierarchy, target):
        entity = build(factory, typed_entity("cls-doc", ("asp-extra",)))
        assert entity.instance_of(target)

    def test_direct_class_needs_only_the_class_fetch(self, factory, transport, hierarchy):
        entity = build(factory, typed_entity("cls-doc"))
        assert entity.instance_of("x:Doc")
        assert transport.calls == [("cls-doc", "default")]

    def test_unrelated_name(self, factory, hierarchy):
        entity = build(factory, typed_entity("cls-doc", ("asp-extra",)))
        assert not entity.instance_of("x:Other")

    def test_namespace_must_match(self, factory, hierarchy):
        entity = build(factory, typed_entity("cls-doc"))
        assert not entity.instance_of("y:Doc")

    def test_cyclic_superclasses_terminate(self, factory, transport):
        transport.add(class_record("cyc-a", "x", "A", super_class="cyc-b"))
        transport.add(class_record("cyc-b", "x", "B", super_class="cyc-a"))
        entity = build(factory, typed_entity("cyc-a"))

        assert not entity.instance_of("x:Nope")
        assert entity.instance_of("x:B")

    def test_self_including_aspect_terminates(self, factory, transport):
        transport.add(class_record("loop", "x", "Loop", included_aspects=("loop",)))
        entity = build(factory, typed_entity("loop"))
        assert not entity.instance_of("x:Nope")

    def test_entity_without_class_information(self, factory):
        entity = build(factory, obj("bare", complete=True))
        assert not entity.instance_of("x:Doc")


class TestMutation:
    def test_read_only_property_rejects_writes(self, factory):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x", read_only=True)))
        with pytest.raises(AccessDeniedError):
            entity.set_property("t:a", "y")
        assert not entity.is_dirty

    def test_write_marks_dirty(self, factory):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))
        assert not entity.is_dirty
        entity.set_property("t:a", "y")
        assert entity.get_property("t:a").value == "y"
        assert entity.get_property("t:a").is_dirty
        assert entity.is_dirty

    def test_multiplicity_is_checked(self, factory):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x"), prop("t:m", "STRING", ["a"], multi=True)))
        with pytest.raises(TypeError):
            entity.set_property("t:a", ["y"])
        with pytest.raises(TypeError):
            entity.set_property("t:m", "y")
        entity.set_property("t:m", ("b", "c"))
        assert entity.get_property("t:m").value == ["b", "c"]

    def test_save_is_not_supported(self, factory, transport):
        entity = build(factory, partial_owner(prop("t:a", "STRING", "x")))
        entity.set_property("t:a", "y")
        with pytest.raises(UnsupportedOperationError) as exc:
            entity.save()
        assert isinstance(exc.value, OdmaError)
        assert entity.is_dirty
        assert transport.calls == []


class TestTypedAccessors:
    def test_matching_accessor(self, factory):
        entity = build(factory, partial_owner(prop("t:n", "LONG", "5"), prop("t:s", "STRING", ["a"], multi=True)))
        assert entity.get_property("t:n").get_integer() == 5
        assert entity.get_property("t:s").get_strings() == ["a"]

    def test_mismatched_accessor(self, factory):
        entity = build(factory, partial_owner(prop("t:n", "LONG", "5"), prop("t:s", "STRING", ["a"], multi=True)))
        with pytest.raises(TypeError):
            entity.get_property("t:n").get_string()
        with pytest.raises(TypeError):
            entity.get_property("t:s").get_string()

    def test_null_multi_reference_reads_as_empty(self, factory):
        entity = build(factory, partial_owner(prop("t:r", "REFERENCE", None, multi=True, resolved=True)))
        assert entity.get_property("t:r").get_references() == []
