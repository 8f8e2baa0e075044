from pathlib import Path

import pytest

from openapi_model_gen.errors import (
    MissingRequiredFieldError,
    NoMatchingVariantError,
    TypeMismatchError,
    UnexpectedNullError,
    UnknownDiscriminatorValueError,
    UnknownEnumValueError,
)
from openapi_model_gen.pipeline import PipelineGenerator
from openapi_model_gen.pipeline.codec import ModelCodec
from openapi_model_gen.runtime import UNSET

TEST_DATA = Path(__file__).parent / "test_data"


def codec_for(name):
    result = PipelineGenerator(None, (TEST_DATA / name).read_text(), source=name).run()
    return ModelCodec(result.table, result.contracts)


@pytest.fixture(scope="module")
def petstore():
    return codec_for("petstore.yaml")


@pytest.fixture(scope="module")
def tree():
    return codec_for("tree.json")


class TestClassModel:
    """The model with a single optional `_class` field"""

    def test_decode_and_encode(self):
        codec = codec_for("class_model.json")
        instance = codec.decode("ClassModel", {"_class": "foo"})
        assert instance._class == "foo"
        assert codec.encode("ClassModel", instance) == {"_class": "foo"}

    def test_absent_field_is_unset(self):
        codec = codec_for("class_model.json")
        instance = codec.decode("ClassModel", {})
        assert instance._class is UNSET
        assert codec.encode("ClassModel", instance) == {}

    def test_instance_check(self):
        codec = codec_for("class_model.json")
        assert codec.is_instance("ClassModel", {})
        assert codec.is_instance("ClassModel", {"_class": "foo"})
        assert not codec.is_instance("ClassModel", "foo")

    def test_null_and_absent_pass_through(self):
        codec = codec_for("class_model.json")
        assert codec.decode("ClassModel", None) is None
        assert codec.decode("ClassModel", UNSET) is UNSET
        assert codec.encode("ClassModel", None) is None

    def test_null_field_is_rejected(self):
        codec = codec_for("class_model.json")
        with pytest.raises(UnexpectedNullError) as exc_info:
            codec.decode("ClassModel", {"_class": None})
        assert exc_info.value.path == "ClassModel._class"

    def test_class_is_a_dataclass(self):
        codec = codec_for("class_model.json")
        cls = codec.model_class("ClassModel")
        assert cls.__name__ == "ClassModel"
        assert cls()._class is UNSET
        assert cls(_class="x") == cls(_class="x")


class TestPolymorphism:
    """Discriminator dispatch through allOf inheritance"""

    def test_root_dispatches_to_subclass(self, petstore):
        data = {"petType": "Cat", "name": "Tom", "huntingSkill": "lazy"}
        pet = petstore.decode("Pet", data)
        assert isinstance(pet, petstore.model_class("Cat"))
        assert pet.hunting_skill == "lazy"
        assert petstore.encode("Pet", pet) == data

    def test_root_decodes_itself(self, petstore):
        pet = petstore.decode("Pet", {"petType": "Pet", "name": "Generic"})
        assert isinstance(pet, petstore.model_class("Pet"))

    def test_ignore_discriminator(self, petstore):
        pet = petstore.decode("Pet", {"petType": "Cat", "name": "Tom"}, ignore_discriminator=True)
        assert type(pet) is petstore.model_class("Pet")

    def test_unknown_discriminator_value(self, petstore):
        with pytest.raises(UnknownDiscriminatorValueError) as exc_info:
            petstore.decode("Pet", {"petType": "Bird", "name": "Tweety"})
        assert exc_info.value.value == "Bird"
        assert exc_info.value.path == "Pet"

    def test_missing_required_field(self, petstore):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            petstore.decode("Pet", {"name": "Nameless"})
        assert exc_info.value.field_name == "petType"

    def test_enum_is_checked(self, petstore):
        with pytest.raises(UnknownEnumValueError) as exc_info:
            petstore.decode("Pet", {"petType": "Cat", "name": "Tom", "huntingSkill": "sleepy"})
        assert exc_info.value.path == "Pet.huntingSkill"

    def test_explicit_union_mapping(self, petstore):
        data = {
            "pets": [
                {"petType": "Dog", "name": "Rex", "packSize": 3},
                {"petType": "Cat", "name": "Tom", "huntingSkill": "aggressive", "nickname": None},
            ],
            "favorite": {"petType": "dog", "name": "Rex"},
            "address": {"street": "1 Main St"},
        }
        owner = petstore.decode("Owner", data)
        assert [type(p).__name__ for p in owner.pets] == ["Dog", "Cat"]
        assert owner.pets[1].nickname is None
        assert owner.pets[1].category is UNSET
        assert type(owner.favorite).__name__ == "Dog"
        assert owner.address.street == "1 Main St"
        assert owner.address.zip is UNSET
        assert petstore.encode("Owner", owner) == data

    def test_encode_rejects_foreign_instances(self, petstore):
        category = petstore.model_class("Category")(id=1, name="cats")
        with pytest.raises(TypeMismatchError):
            petstore.encode("Pet", category)
        owner_cls = petstore.model_class("Owner")
        with pytest.raises(NoMatchingVariantError):
            petstore.encode("Owner", owner_cls(pets=[], favorite=category))

    def test_encode_required_unset(self, petstore):
        pet = petstore.model_class("Pet")(name="Tom")
        with pytest.raises(MissingRequiredFieldError):
            petstore.encode("Pet", pet)

    def test_schema_default_is_the_constructor_default(self, petstore):
        dog = petstore.model_class("Dog")(pet_type="Dog", name="Rex")
        assert dog.pack_size == 0
        assert petstore.encode("Dog", dog) == {"petType": "Dog", "name": "Rex", "packSize": 0}


class TestRecursion:
    """Self-referential models"""

    def test_three_levels(self, tree):
        data = {"value": 1, "children": [{"value": 2, "children": [{"value": 3, "children": []}]}]}
        root = tree.decode("Tree", data)
        assert root.children[0].children[0].value == 3
        assert root.parent is UNSET
        assert tree.encode("Tree", root) == data

    def test_nullable_self_reference(self, tree):
        data = {"value": 1, "parent": None}
        node = tree.decode("Tree", data)
        assert node.parent is None
        assert tree.encode("Tree", node) == data

    def test_error_path(self, tree):
        data = {"value": 1, "children": [{"value": 2, "children": [{"value": 3}, {"children": []}]}]}
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            tree.decode("Tree", data)
        assert exc_info.value.path == "Tree.children[0].children[1]"

    def test_null_in_required_field(self, tree):
        with pytest.raises(UnexpectedNullError) as exc_info:
            tree.decode("Tree", {"value": 1, "children": [{"value": None}]})
        assert exc_info.value.path == "Tree.children[0].value"

    def test_not_a_mapping(self, tree):
        with pytest.raises(TypeMismatchError):
            tree.decode("Tree", [1, 2])

    def test_mapping_field(self, tree):
        data = {"trees": [{"value": 1}], "labels": {"a": "x"}}
        forest = tree.decode("Forest", data)
        assert forest.labels == {"a": "x"}
        assert tree.encode("Forest", forest) == data

    @pytest.mark.parametrize("order", [("Animal", "Dog"), ("Dog", "Animal")])
    def test_parent_holding_its_child(self, order):
        schemas = {
            "Animal": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}, "pup": {"$ref": "#/components/schemas/Dog"}},
            },
            "Dog": {
                "allOf": [
                    {"$ref": "#/components/schemas/Animal"},
                    {"type": "object", "properties": {"bark": {"type": "boolean"}}},
                ]
            },
        }
        document = {"openapi": "3.0.0", "components": {"schemas": {name: schemas[name] for name in order}}}
        result = PipelineGenerator(None, document).run()
        codec = ModelCodec(result.table, result.contracts)

        data = {"name": "a", "pup": {"name": "b", "bark": True}}
        animal = codec.decode("Animal", data)
        assert type(animal.pup).__name__ == "Dog"
        assert animal.pup.bark is True
        assert codec.encode("Animal", animal) == data


class TestUnions:
    """Duck-typed alternations"""

    def test_first_match(self):
        codec = codec_for("unions.json")
        data = {"shapes": [{"radius": 1.5}, {"side": 2}], "title": None, "size": "small", "meta": {"k": [1]}}
        drawing = codec.decode("Drawing", data)
        assert [type(s).__name__ for s in drawing.shapes] == ["Circle", "Square"]
        assert drawing.title is None
        assert codec.encode("Drawing", drawing) == data
        assert codec.decode("Drawing", {"shapes": [], "size": 4}).size == 4

    def test_no_matching_variant(self):
        codec = codec_for("unions.json")
        with pytest.raises(NoMatchingVariantError) as exc_info:
            codec.decode("Drawing", {"shapes": [{"diameter": 1}]})
        assert exc_info.value.path == "Drawing.shapes[0]"
        with pytest.raises(NoMatchingVariantError):
            codec.decode("Drawing", {"shapes": [], "size": 1.5})

    def test_union_model_entry_point(self):
        codec = codec_for("unions.json")
        square = codec.decode("Shape", {"side": 2})
        assert type(square).__name__ == "Square"
        assert codec.encode("Shape", square) == {"side": 2}
        assert codec.is_instance("Shape", {"radius": 1})
        assert not codec.is_instance("Shape", {"diameter": 1})


def test_decoding_is_deterministic(petstore):
    data = {"petType": "Cat", "name": "Tom", "huntingSkill": "lazy", "tags": [{"id": 1}]}
    assert petstore.decode("Pet", data) == petstore.decode("Pet", data)
    assert petstore.encode("Pet", petstore.decode("Pet", data)) == data
    assert codec_for("petstore.yaml").contracts == petstore.contracts


if __name__ == "__main__":
    pytest.main([__file__])
