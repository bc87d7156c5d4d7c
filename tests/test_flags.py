import pytest

from gwsm.admin.members import MEMBER_FLAGS, MEMBER_FLAGS_ALL, map_to_member
from gwsm.errors import (ColumnIndexError, FlagConflictError, FlagError,
                         MissingRequiredFlagError, RowParseError)
from gwsm.flags import (Flag, FlagType, Value, all_flags, check_indices, coerce_cell,
                        consolidate, flag_to_dict, flags_to_map, parse, recursive_flags,
                        row_to_map)

def test_parse_scalars():
    assert(parse(FlagType.STRING, " as is ") == " as is ")
    assert(parse(FlagType.INT, "42") == 42)
    assert(parse(FlagType.INT64, "-9223372036854775808") == -(2 ** 63))
    assert(parse(FlagType.UINT64, "18446744073709551615") == 2 ** 64 - 1)
    assert(parse(FlagType.FLOAT64, "2.5") == 2.5)
    assert(parse(FlagType.RUNE, ",") == ",")
    for s in ["1", "t", "T", "TRUE", "true", "True"]:
        assert(parse(FlagType.BOOL, s) is True)
    for s in ["0", "f", "F", "FALSE", "false", "False"]:
        assert(parse(FlagType.BOOL, s) is False)

def test_parse_lists():
    assert(parse(FlagType.STRING_SLICE, "a,b,c") == ["a", "b", "c"])
    assert(parse(FlagType.STRING_ARRAY, "a,b,c") == ["a,b,c"])

def test_parse_invalid():
    for t, s in [(FlagType.INT, "1.5"), (FlagType.INT, ""), (FlagType.UINT64, "-1"),
                 (FlagType.INT64, "9223372036854775808"), (FlagType.FLOAT64, "abc"),
                 (FlagType.BOOL, "yes"), (FlagType.RUNE, "ab"), (FlagType.RUNE, "")]:
        with pytest.raises(ValueError):
            parse(t, s)

def test_default_types_checked():
    Flag(type=FlagType.FLOAT64, defaults={"x": 1.0})
    with pytest.raises(TypeError):
        Flag(type=FlagType.FLOAT64, defaults={"x": 1})
    with pytest.raises(TypeError):
        Flag(type=FlagType.INT, defaults={"x": True})
    with pytest.raises(TypeError):
        Flag(type=FlagType.RUNE, defaults={"x": ";;"})
    f = Flag(type="stringSlice", defaults={"x": ["a"]})
    assert(f.type == FlagType.STRING_SLICE)
    assert(f.default("x") == ["a"])
    assert(f.default("y") is None)

def test_all_flags():
    assert("groupKey_ALL" in MEMBER_FLAGS_ALL)
    assert("role_ALL" in MEMBER_FLAGS_ALL)
    assert("memberKey_ALL" not in MEMBER_FLAGS_ALL)
    assert("email_ALL" not in MEMBER_FLAGS_ALL)
    assert(len(MEMBER_FLAGS_ALL) == len(MEMBER_FLAGS) - 2)
    g = MEMBER_FLAGS_ALL["groupKey_ALL"]
    assert(g.required == [])
    assert(g.type == MEMBER_FLAGS["groupKey"].type)
    assert(MEMBER_FLAGS_ALL["role_ALL"].default("insert") == "MEMBER")

def test_recursive_flags():
    r = recursive_flags(MEMBER_FLAGS, "insert")
    assert("role" in r)
    assert("email" not in r)
    assert("includeDerivedMembership" not in recursive_flags(MEMBER_FLAGS, "list"))

def test_flags_to_map():
    m = flags_to_map("insert", MEMBER_FLAGS, {"groupKey": "g@example.com", "email": "a@example.com"})
    assert(m["groupKey"].is_set())
    assert(m["groupKey"].get_string() == "g@example.com")
    assert(not m["role"].is_set())
    assert(m["role"].get_string() == "MEMBER")
    assert("memberKey" not in m)
    with pytest.raises(MissingRequiredFlagError):
        flags_to_map("insert", MEMBER_FLAGS, {"email": "a@example.com"})
    with pytest.raises(FlagError):
        flags_to_map("insert", MEMBER_FLAGS, {"groupKey": "g", "nope": 1})
    m = flags_to_map("list", MEMBER_FLAGS, {"groupKey": "g", "includeDerivedMembership": "true"})
    assert(m["includeDerivedMembership"].get_bool() is True)

def test_map_to_member():
    m = flags_to_map("insert", MEMBER_FLAGS, {"groupKey": "g", "email": "a@example.com", "role": "OWNER"})
    assert(map_to_member(m) == {"kind": "admin#directory#member", "email": "a@example.com", "role": "OWNER"})
    # unset role keeps its default out of the body
    m = flags_to_map("patch", MEMBER_FLAGS, {"groupKey": "g"})
    assert(map_to_member(m) == {"kind": "admin#directory#member"})

def test_consolidate_conflict():
    with pytest.raises(FlagConflictError):
        consolidate("insert", MEMBER_FLAGS, {"groupKey": 1, "groupKey_ALL": "g@example.com", "email": 2})

def test_consolidate_required():
    with pytest.raises(MissingRequiredFlagError):
        consolidate("insert", MEMBER_FLAGS, {"email": 1})
    # index 0 means "use the default", which doesn't satisfy a requirement
    with pytest.raises(MissingRequiredFlagError):
        consolidate("insert", MEMBER_FLAGS, {"groupKey": 0, "email": 1})
    with pytest.raises(FlagError):
        consolidate("insert", MEMBER_FLAGS, {"groupKey": 1, "memberKey_ALL": "x"})

def test_consolidate_indices():
    c = consolidate("insert", MEMBER_FLAGS, {"groupKey_ALL": "g@example.com", "email": 1, "role": 0})
    assert(c["groupKey"].all_flag)
    assert(c["groupKey"].value == "g@example.com")
    assert(c["email"].index == 1)
    assert(c["email"].changed)
    assert(c["role"].index == 0)
    assert(not c["role"].changed)
    check_indices(c, 1)
    with pytest.raises(ColumnIndexError):
        check_indices(c, 0)
    with pytest.raises(ColumnIndexError):
        consolidate("insert", MEMBER_FLAGS, {"groupKey": -1})
    with pytest.raises(ColumnIndexError):
        consolidate("insert", MEMBER_FLAGS, {"groupKey": "1"})

def test_row_to_map():
    flags = {"name": Flag(type=FlagType.STRING, available_for=["x"]),
             "count": Flag(type=FlagType.INT, available_for=["x"], defaults={"x": 7}),
             "tags": Flag(type=FlagType.STRING_SLICE, available_for=["x"])}
    c = consolidate("x", flags, {"name": 2, "tags": 1, "count_ALL": "3"})
    m = row_to_map(c, flags, ["a,b", "n"], 5)
    assert(m["name"].get_string() == "n")
    assert(m["tags"].get_string_slice() == ["a", "b"])
    assert(m["count"].get_int() == 3)
    assert(m["count"].all_flag)
    c = consolidate("x", flags, {"count": 1})
    with pytest.raises(RowParseError) as e:
        row_to_map(c, flags, ["many"], 9)
    assert(e.value.row == 9)
    assert(e.value.flag == "count")
    assert(e.value.cell == "many")

def test_coerce_cell():
    f = Flag(type=FlagType.BOOL)
    assert(coerce_cell("b", f, "F") is False)
    with pytest.raises(RowParseError):
        coerce_cell("b", f, "nope", 3)

def test_value_getters():
    v = Value()
    assert(not v.is_set())
    assert(v.get_string() == "")
    assert(v.get_int() == 0)
    assert(v.get_string_slice() == [])
    v = Value(2.5, FlagType.FLOAT64, changed=True)
    assert(v)
    assert(v.get_float() == 2.5)

def test_flag_to_dict():
    assert(flag_to_dict("a=1;b=2;c") == {"a": "1", "b": "2"})
    assert(flag_to_dict("x=a=b") == {"x": "a=b"})
    assert(flag_to_dict("") == {})

def test_all_flags_excludes():
    flags = {"id": Flag(exclude_from_all=True, available_for=["x"], required=["x"]),
             "n": Flag(type=FlagType.INT, available_for=["x"], required=["x"])}
    a = all_flags(flags)
    assert(list(a) == ["n_ALL"])
    assert(not a["n_ALL"].is_required("x"))
