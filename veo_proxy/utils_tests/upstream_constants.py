"""Values shared by the test modules that mock the upstream API."""

from veo_proxy.vars import UPSTREAM_BASE_URL

TEST_TOKEN = "ya29.test-access-token"
VIDEO_URL = "https://example.test/video.mp4"

__all__ = ["TEST_TOKEN", "UPSTREAM_BASE_URL", "VIDEO_URL"]
