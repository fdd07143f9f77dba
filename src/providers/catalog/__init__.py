"""Persisted concert catalog stores.

SQLiteCatalogStore keeps locally created concerts and user reviews in
data/catalog.db.  Provider concerts land here only when a user reviews them
(upsert-on-write), keeping their namespaced id.
"""
