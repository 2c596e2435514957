"""Test utilities for wali applications.

::

    from wali.testing import TestClient
"""

from wali.testing.client import TestClient, TestResponse

__all__ = ["TestClient", "TestResponse"]
