"""Sample resources and executor doubles shared by the tests."""
