from nftlife.core.grammar import TableName, is_lower_snake
from nftlife.core.schema import LifecycleEventRow, StateSnapshotRow
from nftlife.core.tables import get_table, list_tables
from nftlife.core.versioning import SCHEMA_V


def test_every_table_name_has_a_descriptor():
    assert {d.name for d in list_tables()} == set(TableName)


def test_descriptor_invariants():
    for desc in list_tables():
        cols = set(desc.columns)
        assert desc.partitioning == ["bucket"]
        assert set(desc.required).issubset(cols)
        assert set(desc.required).isdisjoint(desc.nullable)
        assert set(desc.required) | set(desc.nullable) == cols
        assert set(desc.columns.values()) <= {"i64", "str"}
        assert all(is_lower_snake(c) for c in cols)
        assert desc.version == SCHEMA_V


def test_row_models_cover_descriptor_columns():
    events = set(get_table(TableName.LIFECYCLE_EVENTS).columns) - {"bucket"}
    snapshots = set(get_table(TableName.STATE_SNAPSHOTS).columns) - {"bucket"}
    assert events == set(LifecycleEventRow.model_fields)
    assert snapshots == set(StateSnapshotRow.model_fields)
