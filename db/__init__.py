"""
db/ - Database Layer
====================
PostgreSQL connection pool, schema bootstrap, the filter-to-SQL
translator, the field/column mapper and the backup pipeline.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
