"""
Permission codes and the roles that hold them.

DESIGN:
- Permissions are granular (one screen or action per code)
- Roles are fixed (admin, cashier, baker, sales); the mapping lives here,
  not in the database
- Admin holds every permission
"""

from .models.auth import ROLE_ADMIN, ROLE_BAKER, ROLE_CASHIER, ROLE_SALES


class PermissionCategory:
    CATALOG = "CATALOG"
    SALES = "SALES"
    DEBTS = "DEBTS"
    ORDERS = "ORDERS"
    STAFF = "STAFF"
    REPORTS = "REPORTS"


# (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_CATALOG", "View Catalog", "Browse products and prices", PermissionCategory.CATALOG),
    ("MANAGE_PRODUCTS", "Manage Products", "Create and edit products", PermissionCategory.CATALOG),
    ("IMPORT_STOCK", "Import Stock", "Record incoming deliveries", PermissionCategory.CATALOG),
    ("USE_POS", "Use POS", "Build carts and settle sales at the register", PermissionCategory.SALES),
    ("MANAGE_DEBTS", "Manage Debts", "Create customers and record debt or repayments", PermissionCategory.DEBTS),
    ("MANAGE_CAKE_ORDERS", "Manage Cake Orders", "Take, deliver and cancel cake pre-orders", PermissionCategory.ORDERS),
    ("VIEW_SHIFTS", "View Shifts", "See the staff roster", PermissionCategory.STAFF),
    ("MANAGE_SHIFTS", "Manage Shifts", "Edit the staff roster", PermissionCategory.STAFF),
    ("VIEW_REPORTS", "View Reports", "Revenue, debt and inventory reports", PermissionCategory.REPORTS),
]

ALL_PERMISSION_CODES = frozenset(p[0] for p in PERMISSION_DEFINITIONS)

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: sorted(ALL_PERMISSION_CODES),
    ROLE_CASHIER: [
        "VIEW_CATALOG",
        "USE_POS",
        "MANAGE_DEBTS",
        "MANAGE_CAKE_ORDERS",
        "VIEW_SHIFTS",
    ],
    ROLE_SALES: [
        "VIEW_CATALOG",
        "USE_POS",
        "MANAGE_DEBTS",
        "MANAGE_CAKE_ORDERS",
        "VIEW_SHIFTS",
    ],
    ROLE_BAKER: [
        "VIEW_CATALOG",
        "IMPORT_STOCK",
        "MANAGE_CAKE_ORDERS",
        "VIEW_SHIFTS",
    ],
}


def get_permissions_for_role(role: str) -> frozenset:
    return frozenset(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def role_has_permission(role: str, code: str) -> bool:
    return code in get_permissions_for_role(role)


def get_permission_definition(code):
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None
