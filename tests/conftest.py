import fakeredis
import pytest

from bitmap_bloom import FilterParameters, RedisBloomFilter


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def client(server):
    return fakeredis.FakeRedis(server=server)


@pytest.fixture
def params():
    return FilterParameters.create(3000, 0.03)


@pytest.fixture
def bloom(client, params):
    return RedisBloomFilter(client, params=params)
