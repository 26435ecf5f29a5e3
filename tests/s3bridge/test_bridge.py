import threading
import unittest
from unittest import mock

from botocore.exceptions import ClientError

from s3bridge import bridge as bridge_module
from s3bridge.bridge import S3Bridge, get_default_bridge
from s3bridge.errors import BackendError, ConfigError, ErrorKind
from s3bridge.storage.client import ClientCache


def create_test_environ(**overrides) -> dict:
    environ = {
        "S3_ENDPOINT_URL": "http://localhost:9000",
        "AWS_ACCESS_KEY_ID": "minioadmin",
        "AWS_SECRET_ACCESS_KEY": "minioadmin",
    }
    environ.update(overrides)
    return {name: value for name, value in environ.items() if value is not None}


class FakeBody:

    def __init__(self, data: bytes):
        self.data = data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def read(self) -> bytes:
        return self.data


class InMemoryS3Client:
    """Minimal async S3 client keeping objects in a dict."""

    def __init__(self):
        self.buckets = set()
        self.objects = {}

    async def head_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "404"}}, "HeadObject")
        return {}

    async def create_bucket(self, Bucket):
        if Bucket in self.buckets:
            raise ClientError(
                {"Error": {"Code": "BucketAlreadyOwnedByYou"}}, "CreateBucket"
            )
        self.buckets.add(Bucket)
        return {}

    async def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = Body
        return {"ETag": '"etag-%d"' % len(Body)}

    async def get_object(self, Bucket, Key):
        return {"Body": FakeBody(self.objects[(Bucket, Key)])}


class FakeContext:

    def __init__(self):
        self.exited = False

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True


class TestS3Bridge(unittest.TestCase):

    def setUp(self):
        self.built_configs = []
        self.contexts = []
        self.client = InMemoryS3Client()
        self.lock = threading.Lock()

        async def fake_build_client(s3_config, settings=None):
            with self.lock:
                self.built_configs.append(s3_config)
                context = FakeContext()
                self.contexts.append(context)
            return self.client, context

        patcher = mock.patch.object(bridge_module, "build_client", fake_build_client)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.bridge = S3Bridge(environ=create_test_environ())
        self.addCleanup(self.bridge.close)

    def test_end_to_end_scenario(self):
        self.assertTrue(self.bridge.create_bucket("test-bucket"))
        etag = self.bridge.put_object("test-bucket", "hello.txt", b"Hi", content_type="text/plain")

        self.assertEqual(etag, "etag-2")
        self.assertTrue(self.bridge.object_exists("test-bucket", "hello.txt"))
        self.assertFalse(self.bridge.object_exists("test-bucket", "nope.txt"))
        self.assertEqual(self.bridge.get_object("test-bucket", "hello.txt"), b"Hi")
        self.assertEqual(len(self.built_configs), 1)

    def test_recreating_bucket_fails(self):
        self.bridge.create_bucket("test-bucket")

        with self.assertRaises(BackendError) as context:
            self.bridge.create_bucket("test-bucket")

        self.assertEqual(context.exception.kind, ErrorKind.BACKEND_ERROR)

    def test_concurrent_calls_build_one_client(self):
        errors = []

        def call():
            try:
                self.bridge.object_exists("test-bucket", "hello.txt")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=call) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(self.built_configs), 1)
        self.assertEqual(len(self.bridge.cache), 1)

    def test_different_regions_build_two_clients(self):
        self.bridge.object_exists("test-bucket", "hello.txt", region="us-east-1")
        self.bridge.object_exists("test-bucket", "hello.txt", region="eu-west-1")
        self.bridge.object_exists("test-bucket", "hello.txt", region="eu-west-1")

        self.assertEqual([c.region for c in self.built_configs], ["us-east-1", "eu-west-1"])

    def test_session_token_change_reuses_client(self):
        self.bridge.object_exists("test-bucket", "hello.txt", session_token="token-a")
        self.bridge.object_exists("test-bucket", "hello.txt", session_token="token-b")

        self.assertEqual(len(self.built_configs), 1)
        self.assertEqual(self.built_configs[0].session_token, "token-a")

    def test_endpoint_without_scheme_targets_https(self):
        self.bridge.object_exists("test-bucket", "hello.txt", endpoint_url="s3.example.com:9000")

        self.assertEqual(self.built_configs[0].endpoint_url, "https://s3.example.com:9000")

    def test_missing_secret_key_fails_before_building(self):
        bridge = S3Bridge(environ=create_test_environ(AWS_SECRET_ACCESS_KEY=None))
        self.addCleanup(bridge.close)

        operations = [
            lambda: bridge.object_exists("test-bucket", "hello.txt"),
            lambda: bridge.create_bucket("test-bucket"),
            lambda: bridge.put_object("test-bucket", "hello.txt", b"Hi"),
            lambda: bridge.get_object("test-bucket", "hello.txt"),
        ]
        for operation in operations:
            with self.assertRaises(ConfigError) as context:
                operation()
            self.assertEqual(context.exception.kind, ErrorKind.CONFIG_ERROR)

        self.assertEqual(self.built_configs, [])
        self.assertFalse(bridge.runner.is_running)

    def test_close_exits_cached_clients(self):
        self.bridge.object_exists("test-bucket", "hello.txt")
        self.bridge.object_exists("test-bucket", "hello.txt", region="eu-west-1")

        self.bridge.close()

        self.assertEqual(len(self.contexts), 2)
        self.assertTrue(all(context.exited for context in self.contexts))
        self.assertEqual(len(self.bridge.cache), 0)
        self.assertFalse(self.bridge.runner.is_running)

    def test_injected_cache_is_used(self):
        cache = ClientCache()
        bridge = S3Bridge(cache=cache, runner=self.bridge.runner, environ=create_test_environ())

        bridge.object_exists("test-bucket", "hello.txt")

        self.assertEqual(len(cache), 1)
        self.assertEqual(len(self.bridge.cache), 0)


class TestDefaultBridge(unittest.TestCase):

    def test_default_bridge_is_shared(self):
        self.assertIs(get_default_bridge(), get_default_bridge())

    def test_module_functions_delegate_to_default_bridge(self):
        fake = mock.Mock(spec=S3Bridge)
        fake.object_exists.return_value = True

        with mock.patch.object(bridge_module, "get_default_bridge", return_value=fake):
            self.assertTrue(bridge_module.object_exists("test-bucket", "hello.txt", region="eu-west-1"))

        fake.object_exists.assert_called_once_with("test-bucket", "hello.txt", region="eu-west-1")


if __name__ == "__main__":
    unittest.main()
