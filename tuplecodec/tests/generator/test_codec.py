"""Tests for codec generation."""

import dataclasses
import os
from typing import NamedTuple

import pytest

from tuplecodec.generator import (
    MissingIdentityLabel,
    UnsupportedShape,
    ValidationError,
    generate_codec,
    generate_codecs,
    parse_schema,
    parse_schemas,
)
from tuplecodec.generator.registry import TypeRegistry, UnsupportedFieldType
from tuplecodec.generator.types import RawDescription, RawField
from tuplecodec.runtime.serialization import DecodeError, EncodeError
from tuplecodec.runtime.types import Width

FILE_DIR = os.path.dirname(os.path.realpath(__file__))


def _codec(text, **kwargs):
    (schema,) = parse_schemas(text)
    return generate_codec(schema, **kwargs)


def _file_codecs():
    with open(FILE_DIR + "/values.tc") as f:
        return generate_codecs(parse_schemas(f.read()))


def describe_scenarios():
    def person_round_trips(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String age: u8 }')
        expect(codec.identity) == "Person(u32,String,u8)"
        expect(codec.width) == Width.variable()

        packed = codec.encode({"id": 1, "name": "Al", "age": 30})
        expect(packed) == bytes.fromhex("01000000" "02000000" "416c" "1e")

        person = codec.decode(packed)
        expect((person.id, person.name, person.age)) == (1, "Al", 30)

    def point_is_fixed(expect):
        codec = _codec('@label("Point") struct Point(f64, f64)')
        expect(codec.identity) == "Point(f64,f64)"
        expect(codec.width) == Width.fixed(16)

        packed = codec.encode((1.5, -2.0))
        expect(len(packed)) == 16
        expect(codec.decode(packed)) == (1.5, -2.0)

    def user_id_is_fixed(expect):
        codec = _codec('@label("UserId") struct UserId { value: u64 }')
        expect(codec.identity) == "UserId(u64)"
        expect(codec.width) == Width.fixed(8)

        packed = codec.encode({"value": 42})
        expect(packed) == bytes.fromhex("2a00000000000000")
        expect(codec.decode(packed).value) == 42

    def detects_schema_drift(expect):
        raw = RawDescription(
            label="Person",
            fields=[
                RawField(name="id", type="u32"),
                RawField(name="name", type="String"),
                RawField(name="age", type="u8"),
            ],
        )
        original = generate_codec(parse_schema(raw))
        stored = original.encode({"id": 7, "name": "Bo", "age": 40})

        raw.fields[2] = RawField(name="age", type="u16")
        regenerated = generate_codec(parse_schema(raw))

        expect(regenerated.identity) != original.identity
        expect(original.decode(stored).age) == 40


def describe_rejection():
    def rejects_unlabeled_description(expect):
        with pytest.raises(MissingIdentityLabel):
            generate_codecs(parse_schemas("struct Person { id: u32 }"))

    def rejects_zero_field_description(expect):
        with pytest.raises(UnsupportedShape):
            generate_codecs(parse_schemas('@label("Nothing") struct Nothing {}'))

    def rejects_unknown_field_type(expect):
        with pytest.raises(UnsupportedFieldType):
            _codec('@label("Bad") struct Bad { a: u8 b: Widget }')


def describe_records():
    def decodes_named_fields_to_frozen_dataclass(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String age: u8 }')
        person = codec.decode(codec.encode({"id": 1, "name": "Al", "age": 30}))

        expect(dataclasses.is_dataclass(person)) == True
        expect(type(person).__name__) == "Person"
        with pytest.raises(dataclasses.FrozenInstanceError):
            person.age = 31

    def round_trips_default_record(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String age: u8 }')
        person = codec.decode(codec.encode({"id": 9, "name": "Zed", "age": 3}))
        expect(codec.decode(codec.encode(person))) == person

    def uses_supplied_record_type(expect):
        @dataclasses.dataclass
        class Person:
            id: int
            name: str
            age: int

        codec = _codec(
            '@label("Person") struct Person { id: u32 name: String age: u8 }',
            record_type=Person,
        )
        original = Person(id=5, name="Eve", age=22)
        expect(codec.decode(codec.encode(original))) == original

    def decodes_tuple_fields_to_tuples(expect):
        codec = _codec('@label("Pair") struct Pair(u8, String)')
        expect(codec.decode(codec.encode((3, "x")))) == (3, "x")

    def accepts_named_tuples_for_tuple_fields(expect):
        class Pair(NamedTuple):
            a: int
            b: str

        codec = _codec('@label("Pair") struct Pair(u8, String)', record_type=Pair)
        expect(codec.decode(codec.encode(Pair(3, "x")))) == Pair(3, "x")

    def decodes_unnamed_single_field_to_tuple(expect):
        codec = _codec('@label("Id") struct Id(u64)')
        expect(codec.decode(codec.encode((5,)))) == (5,)
        with pytest.raises(EncodeError):
            codec.encode(5)

    def rejects_record_missing_field(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String }')
        with pytest.raises(EncodeError):
            codec.encode({"id": 1})

    def rejects_wrong_tuple_arity(expect):
        codec = _codec('@label("Point") struct Point(f64, f64)')
        with pytest.raises(EncodeError):
            codec.encode((1.0,))

    def rejects_out_of_range_value(expect):
        codec = _codec('@label("Small") struct Small { a: u8 b: u8 }')
        with pytest.raises(EncodeError):
            codec.encode({"a": 256, "b": 0})


def describe_trailing_field():
    def omits_prefix_for_last_variable_field(expect):
        codec = _codec('@label("Tail") struct Tail { id: u32 name: String }')
        packed = codec.encode({"id": 7, "name": "abc"})
        expect(packed) == bytes.fromhex("07000000" "616263")
        expect(codec.decode(packed).name) == "abc"

    def prefixes_only_non_final_variable_fields(expect):
        codec = _codec('@label("Two") struct Two { a: String b: String }')
        packed = codec.encode({"a": "hi", "b": "there"})
        expect(packed) == b"\x02\x00\x00\x00hithere"

    def rejects_truncated_buffer(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String age: u8 }')
        with pytest.raises(DecodeError):
            codec.decode(b"\x01\x00")

    def rejects_length_prefix_past_end(expect):
        codec = _codec('@label("Person") struct Person { id: u32 name: String age: u8 }')
        with pytest.raises(DecodeError):
            codec.decode(bytes.fromhex("01000000" "ff000000" "416c" "1e"))

    def rejects_trailing_bytes(expect):
        codec = _codec('@label("Point") struct Point(f64, f64)')
        with pytest.raises(DecodeError):
            codec.decode(codec.encode((1.0, 2.0)) + b"\x00")


def describe_generate_codecs():
    def builds_nested_codecs(expect):
        codecs = _file_codecs()
        account = codecs["Account"]
        expect(list(codecs)) == ["Person", "Point", "UserId", "Account"]
        expect(account.identity) == (
            "Account(Person(u32,String,u8),Point(f64,f64),[u8;4],Option<String>)"
        )
        expect(account.width) == Width.variable()

    def round_trips_nested_values(expect):
        codecs = _file_codecs()
        account = codecs["Account"]
        Person = codecs["Person"].record_type

        value = {
            "owner": Person(id=1, name="Al", age=30),
            "origin": (0.5, 0.25),
            "tags": [1, 2, 3, 4],
            "nickname": None,
        }
        decoded = account.decode(account.encode(value))
        expect(decoded.owner) == Person(id=1, name="Al", age=30)
        expect(decoded.origin) == (0.5, 0.25)
        expect(decoded.tags) == [1, 2, 3, 4]
        expect(decoded.nickname) == None

    def resolves_out_of_order_declarations(expect):
        codecs = generate_codecs(
            parse_schemas(
                """
                @label("Outer") struct Outer { inner: Inner }
                @label("Inner") struct Inner { value: u8 }
            """
            )
        )
        expect(codecs["Outer"].identity) == "Outer(Inner(u8))"
        expect(codecs["Outer"].width) == Width.fixed(1)

    def registers_codecs_in_given_registry(expect):
        registry = TypeRegistry()
        generate_codecs(parse_schemas('@label("Inner") struct Inner { value: u8 }'), registry)
        expect("Inner" in registry) == True
        expect(_codec('@label("Wrap") struct Wrap(Inner, Inner)', registry=registry).width) == (
            Width.fixed(2)
        )

    def rejects_recursive_types(expect):
        with pytest.raises(ValidationError) as exc:
            generate_codecs(
                parse_schemas(
                    """
                    @label("A") struct A { b: B }
                    @label("B") struct B { a: Option<A> }
                """
                )
            )
        expect("Recursive" in str(exc.value)) == True

    def rejects_duplicate_names(expect):
        with pytest.raises(ValidationError):
            generate_codecs(
                parse_schemas('@label("A") struct A { a: u8 } @label("A2") struct A { a: u16 }')
            )

    def rejects_shadowing_primitives(expect):
        with pytest.raises(ValidationError):
            generate_codecs(parse_schemas('@label("Num") struct u32 { a: u8 }'))


def describe_key_ordering():
    def orders_by_fields_in_declaration_order(expect):
        codec = _codec('@label("Key") struct Key { id: u32 name: String }')
        apple1 = codec.encode({"id": 1, "name": "apple"})
        banana1 = codec.encode({"id": 1, "name": "banana"})
        apple2 = codec.encode({"id": 2, "name": "apple"})

        expect(codec.compare(apple1, banana1)) == -1
        expect(codec.compare(banana1, apple2)) == -1
        expect(codec.compare(apple2, apple1)) == 1
        expect(codec.compare(apple1, apple1)) == 0

    def orders_none_before_some(expect):
        codec = _codec('@label("Opt") struct Opt { a: Option<u8> b: u8 }')
        none = codec.encode({"a": None, "b": 9})
        some = codec.encode({"a": 0, "b": 0})
        expect(codec.compare(none, some)) == -1
