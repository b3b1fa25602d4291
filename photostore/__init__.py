"""
Photo metadata and engagement backend.

This package provides a FastAPI application that stores photo records,
threaded comments and per-author ratings in a partitioned document store
(DynamoDB), with in-memory doubles for local runs and tests.
"""
