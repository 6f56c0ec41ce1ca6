"""
repositories/ - Data Access Layer
==================================
Each repository is bound to one table and exposes the generic
find / find_one / create / update_by_id / delete_by_id / count contract,
plus the few entity-specific reads (joins, aggregates) that the
generic contract cannot express.
"""
