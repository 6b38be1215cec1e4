import random

import pytest

from voro3d.points import build_virtual_points


@pytest.fixture
def rng():
    return random.Random(12345)


@pytest.fixture
def cage():
    # повний каркас: 8 кутів + 6 граней по 3x3
    return build_virtual_points(30.0)


@pytest.fixture
def small_cage():
    # 8 кутів + центри 6 граней: клітинки обмежені, python-бекенд швидкий
    return build_virtual_points(30.0, grid=(0.0,))
