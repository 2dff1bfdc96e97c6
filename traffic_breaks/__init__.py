"""
Traffic Breaks - Egress-traffic guard for Alibaba Cloud ECS instances.

Watches per-region CDT internet traffic and stops ECS instances whose region
has used up its configured quota, starting them again once usage drops back
under the threshold (for example after the billing cycle resets).
"""

__version__ = "1.0.0"

from traffic_breaks.core.exceptions import TrafficBreaksError

__all__ = ["TrafficBreaksError"]
