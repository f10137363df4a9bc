from .config import FORWARDING_CONFIG, ForwardingConfig, create_upstream_client
from .forwarder import forward_json
from .json_result import MalformedBody, ParsedBody, UpstreamBody, parse_upstream_body
from .video_relay import relay_video

__all__ = [
    "FORWARDING_CONFIG",
    "ForwardingConfig",
    "create_upstream_client",
    "forward_json",
    "MalformedBody",
    "ParsedBody",
    "UpstreamBody",
    "parse_upstream_body",
    "relay_video",
]
