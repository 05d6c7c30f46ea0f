"""
Cassandra CDC publisher: commit log and trigger change events on Kafka
"""

__version__ = "1.0.0"
