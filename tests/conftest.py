"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from reflect_json import DynamicMessage, SchemaPool, load_schema, parse_schema

DATA_DIR = Path(__file__).parent / "data"

RECORD_SCHEMA = """
syntax = "proto2";
package test;

enum Status {
  UNKNOWN = 0;
  ACTIVE = 1;
  SUSPENDED = 2;
}

message Address {
  optional string street = 1;
  optional uint32 number = 2;
}

message Contact {
  required string name = 1;
  optional string email = 2;
}

message Record {
  optional double d = 1;
  optional float f = 2;
  optional int32 count = 3;
  optional uint32 u32 = 4;
  optional int64 i64 = 5;
  optional uint64 u64 = 6;
  optional bool flag = 7;
  optional string text = 8;
  optional Address address = 9;
  optional Status status = 10;
  repeated string tags = 11;
  repeated Address addresses = 12;
  repeated Status history = 13;
  repeated int32 counts = 14;
  optional bytes blob = 15;
}
"""


@pytest.fixture(scope="session")
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture(scope="session")
def pool() -> SchemaPool:
    """Schema pool with a record type covering every field kind."""
    return parse_schema(RECORD_SCHEMA)


@pytest.fixture(scope="session")
def addressbook() -> SchemaPool:
    return load_schema(DATA_DIR / "addressbook.proto")


@pytest.fixture
def record(pool: SchemaPool) -> DynamicMessage:
    """Empty test.Record instance."""
    return pool.new_message("test.Record")


@pytest.fixture
def contact(pool: SchemaPool) -> DynamicMessage:
    return pool.new_message("test.Contact")


@pytest.fixture
def person(addressbook: SchemaPool) -> DynamicMessage:
    return addressbook.new_message("addressbook.Person")
