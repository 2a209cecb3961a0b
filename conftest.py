import pytest


@pytest.fixture
def sample_forest():
    """The outline used throughout the tests.

    1
        2
            5
            6
        3
        4
            7
            8
            9
    """
    return [{"id": 1, "children": [{"id": 2, "children": [{"id": 5}, {"id": 6}]},
                                   {"id": 3},
                                   {"id": 4, "children": [{"id": 7}, {"id": 8}, {"id": 9}]}]}]
