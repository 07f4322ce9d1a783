"""
Shared fixtures for the linker test suite.
"""

import pytest


# Four modules, two symbols, every instruction classification.
# Expected symbol table: xy=2, z=15.
INPUT_1 = """\
1 xy 2
2 z xy
5 R 1004  I 5678  E 2000  R 8002  E 7001
0
1 z
6 R 8001  E 1000  E 1000  E 3000  R 1002  A 1010
0
1 z
2 R 5001  E 4000
1 z 2
2 xy z
3 A 8000  E 1001  E 2000
"""

INPUT_1_MEMORY_MAP = [
    1004, 5678, 2015, 8002, 7002,
    8006, 1015, 1015, 3015, 1007, 1010,
    5012, 4015,
    8000, 1015, 2002,
]


@pytest.fixture
def input_1() -> str:
    return INPUT_1


@pytest.fixture
def input_1_file(tmp_path):
    path = tmp_path / "input-1.txt"
    path.write_text(INPUT_1)
    return path


@pytest.fixture
def input_1_memory_map() -> list[int]:
    return list(INPUT_1_MEMORY_MAP)
