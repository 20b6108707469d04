"""Image Relay

Serverless request-forwarding layer for third-party image generation
providers. Normalizes requests, provider protocols (wait, poll,
single-shot, multi-modal) and results into one contract.
"""

__version__ = "0.1.0"
