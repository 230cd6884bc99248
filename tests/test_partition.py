import pandas as pd

from quasiSurvival.partition import map_partitions, partition_positions, split_frame


def _size(frame):
    return len(frame)


def test_partition_positions_keeps_first_appearance_order():
    partitions = partition_positions(["b", "a", "b", "c", "a"])
    assert list(partitions) == ["b", "a", "c"]
    assert partitions == {"b": [0, 2], "a": [1, 4], "c": [3]}


def test_split_frame_preserves_row_order_within_partition():
    d = pd.DataFrame({"id": [2, 1, 2, 1], "x": [10, 20, 30, 40]})
    parts = split_frame(d, "id")
    assert [p["x"].tolist() for p in parts] == [[10, 30], [20, 40]]


def test_map_partitions_sequential_and_threaded_agree():
    d = pd.DataFrame({"id": [1, 1, 2, 3, 3, 3], "x": range(6)})
    parts = split_frame(d, "id")
    sequential = map_partitions(_size, parts, n_jobs=1)
    threaded = map_partitions(_size, parts, n_jobs=2, backend="threading")
    assert sequential == threaded == [2, 1, 3]
