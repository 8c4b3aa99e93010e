import io

from botocore.exceptions import ClientError

from appgen.services.cache import MockCacheService, RedisCacheService, generate_prompt_key
from appgen.services.storage import MockStorageService, S3StorageService


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_mock_storage_roundtrip():
    storage = MockStorageService()
    storage.upload_file("projects/job_1_a/project.json", '{"a": 1}')
    storage.upload_file("projects/job_2_b/project.json", "{}")
    storage.upload_file("other/readme.txt", "hello")

    assert storage.download_file("projects/job_1_a/project.json") == '{"a": 1}'
    assert storage.download_file("missing") is None
    assert sorted(storage.list_files("projects/")) == [
        "projects/job_1_a/project.json",
        "projects/job_2_b/project.json",
    ]
    assert storage.get_stats() == {"totalFiles": 3, "totalSize": 8 + 2 + 5}
    assert storage.get_file_url("a/b.json") == "https://mock-s3-bucket.s3.amazonaws.com/a/b.json"

    assert storage.delete_file("other/readme.txt") is True
    assert storage.delete_file("other/readme.txt") is False
    assert storage.get_stats()["totalFiles"] == 2


def test_mock_storage_overwrites_key():
    storage = MockStorageService()
    storage.upload_file("k", "first")
    storage.upload_file("k", "second")
    assert storage.download_file("k") == "second"
    assert storage.get_stats() == {"totalFiles": 1, "totalSize": 6}


def test_prompt_key_normalizes_case_and_whitespace():
    assert generate_prompt_key("  Build A Todo App ") == generate_prompt_key("build a todo app")
    assert generate_prompt_key("build a todo app").startswith("prompt:")
    assert generate_prompt_key("a") != generate_prompt_key("b")


def test_mock_cache_expires_lazily():
    clock = FakeClock()
    cache = MockCacheService(clock=clock)
    cache.set("prompt:x", {"success": True}, ttl_seconds=60)

    clock.now += 60
    assert cache.get("prompt:x") == {"success": True}
    assert cache.get_stats() == {"totalKeys": 1}

    clock.now += 1
    assert cache.get("prompt:x") is None
    assert cache.get_stats() == {"totalKeys": 0}


def test_mock_cache_clear():
    cache = MockCacheService()
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()
    assert cache.get("a") is None
    assert cache.get_stats() == {"totalKeys": 0}


class FakeS3:
    def __init__(self):
        self.objects = {}

    def _missing(self, op):
        return ClientError({"Error": {"Code": "NoSuchKey", "Message": "not found"}}, op)

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def list_objects_v2(self, Bucket, Prefix="", ContinuationToken=None):
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start : start + 2]
        resp = {"Contents": [{"Key": k, "Size": len(self.objects[k])} for k in page]}
        if start + 2 < len(keys):
            resp["NextContinuationToken"] = str(start + 2)
        return resp


def test_s3_storage_with_fake_client():
    s3 = S3StorageService(bucket="gen-bucket", region="eu-west-1", client=FakeS3())
    for i in range(3):
        s3.upload_file(f"projects/job_{i}_a/project.json", "{}")
    s3.upload_file("notes.txt", "hello")

    assert s3.download_file("notes.txt") == "hello"
    assert s3.download_file("nope") is None
    assert len(s3.list_files("projects/")) == 3
    assert s3.get_stats() == {"totalFiles": 4, "totalSize": 3 * 2 + 5}
    assert s3.get_file_url("notes.txt") == "https://gen-bucket.s3.eu-west-1.amazonaws.com/notes.txt"

    assert s3.delete_file("notes.txt") is True
    assert s3.delete_file("notes.txt") is False


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key):
        return self.data.get(key)

    def dbsize(self):
        return len(self.data)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.data) if k.startswith(prefix)]

    def delete(self, key):
        self.data.pop(key, None)


def test_redis_cache_with_fake_client():
    fake = FakeRedis()
    cache = RedisCacheService("redis://unused", client=fake)

    key = cache.generate_prompt_key("Build me a todo app")
    cache.set(key, {"success": True, "tokens_used": 1500}, ttl_seconds=120)

    assert fake.ttls[key] == 120
    assert cache.get(key) == {"success": True, "tokens_used": 1500}
    assert cache.get("prompt:missing") is None
    assert cache.get_stats() == {"totalKeys": 1}

    fake.data["unrelated"] = "keep"
    cache.clear()
    assert fake.data == {"unrelated": "keep"}
