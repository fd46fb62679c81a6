"""
Networking

- http: declarative REST operations, signing, resilience and the executor
"""
