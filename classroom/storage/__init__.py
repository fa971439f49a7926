"""Blob and document stores.

Intent:
    Two independent stores joined only by the ordering discipline of the
    teaching services: blobs hold binary uploads under generated keys, the
    document store holds the `site` and `users` slots.
"""
