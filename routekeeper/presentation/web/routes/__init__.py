"""
Web routes organized by domain.

Route Modules:
    routes: Route CRUD, listing, dependency check and deletion
    special: Read-only route queries and in-use value listings
    imports: Bulk import and import history
    health: Liveness with database ping
"""
