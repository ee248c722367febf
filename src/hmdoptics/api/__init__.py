from hmdoptics.api.hmd import HMD, EyePose, Subscription

__all__ = [
    "HMD",
    "EyePose",
    "Subscription",
]
