"""Tests for the classification table."""

import pytest

from target_context.table import (
    ABI_TABLE,
    API_VERSIONS,
    KNOWN_UNSUPPORTED_ABIS,
    LATEST_VERSION,
    OS_TABLE,
    AbiValue,
    ClassificationTable,
    Kind,
    OsValue,
    TableError,
    _TableValue,
    table_for,
    variants_at,
)


def test_api_versions_ascending():
    assert list(API_VERSIONS) == sorted(set(API_VERSIONS))
    assert LATEST_VERSION == 3


def test_introduction_versions():
    assert OsValue.Unknown.introduced == 3
    assert AbiValue.Unknown.introduced == 3
    assert AbiValue.Linux_x86.introduced == 2
    for member in OsValue:
        if member is not OsValue.Unknown:
            assert member.introduced == 1
    for member in AbiValue:
        if member not in (AbiValue.Unknown, AbiValue.Linux_x86):
            assert member.introduced == 1


def test_canonical_names():
    assert AbiValue.Linux_x86.raw_name == "linux_x86"
    assert AbiValue.Unknown.raw_name == "unknown"
    assert AbiValue.Android_arm64v8a.raw_name == "android_arm64v8a"
    for member in OsValue:
        assert member.raw_name == member.name


def test_tables_are_injective():
    for table in (OS_TABLE, ABI_TABLE):
        raw_names = [m.raw_name for m in table.enum_type]
        assert len(raw_names) == len(set(raw_names))


def test_every_variant_round_trips():
    for table in (OS_TABLE, ABI_TABLE):
        for member in table.enum_type:
            assert table.lookup(member.raw_name) is member


def test_known_unsupported_tokens_map_to_unknown():
    for token in KNOWN_UNSUPPORTED_ABIS:
        assert ABI_TABLE.lookup(token) is AbiValue.Unknown
    assert "darwin_ppc64" in ABI_TABLE
    assert "darwin_ppc64" not in OS_TABLE


def test_table_is_read_only():
    with pytest.raises(TypeError):
        ABI_TABLE.entries["riscv64"] = AbiValue.Unknown


def test_table_sizes():
    assert len(OS_TABLE) == len(OsValue)
    assert len(ABI_TABLE) == len(AbiValue) + len(KNOWN_UNSUPPORTED_ABIS)


def test_variants_at():
    v1 = variants_at(AbiValue, 1)
    v2 = variants_at(AbiValue, 2)
    v3 = variants_at(AbiValue, 3)
    assert AbiValue.Linux_x86 not in v1
    assert AbiValue.Linux_x86 in v2
    assert AbiValue.Unknown not in v2
    assert v3 == list(AbiValue)
    assert variants_at(OsValue, 2) == [m for m in OsValue if m is not OsValue.Unknown]


def test_variants_only_grow_across_versions():
    for enum_type in (OsValue, AbiValue):
        previous = set()
        for version in API_VERSIONS:
            current = set(variants_at(enum_type, version))
            assert previous <= current
            previous = current


def test_table_for():
    assert table_for(Kind.OS) is OS_TABLE
    assert table_for(Kind.ABI) is ABI_TABLE


def test_extra_token_cannot_shadow_canonical_name():
    with pytest.raises(TableError, match="already mapped"):
        ClassificationTable(Kind.ABI, AbiValue, extra_tokens={"linux_x86": AbiValue.Unknown})


def test_extra_token_must_belong_to_enumeration():
    with pytest.raises(TableError, match="not a AbiValue"):
        ClassificationTable(Kind.ABI, AbiValue, extra_tokens={"x": OsValue.Linux})


def test_table_error_is_value_error():
    assert issubclass(TableError, ValueError)


def test_duplicated_raw_name_is_rejected():
    class DuplicateAbi(_TableValue):
        Linux_x86 = ("linux_x86", 2)
        Linux_i386 = ("linux_x86", 2)

    with pytest.raises(TableError, match="Linux_x86 and Linux_i386 share raw name 'linux_x86'"):
        ClassificationTable(Kind.ABI, DuplicateAbi)
