BASE_ACTIONS = ("read", "create", "update", "activate", "deactivate", "delete", "export")
WILDCARD_ACTION = "*"

RESOURCE_NAMES = {
    "user": "usuarios",
    "role": "roles",
    "customer": "clientes",
    "supplier": "proveedores",
    "workshop": "talleres",
    "worker": "trabajadores",
    "garment-type": "tipos de prendas",
    "garment-type-image": "imágenes de tipos de prendas",
    "material-type": "tipos de insumo",
    "material": "materiales",
    "unit": "unidades",
    "labor-type": "tipos de acción",
    "labor": "acciones",
    "size": "tallas",
    "garment-template": "plantillas de prendas",
    "garment-template-material": "insumos de plantilla de prenda",
    "garment-template-labor": "mano de obra de plantilla de prenda",
    "quotation": "cotizaciones",
    "quotation-item": "ítems de cotización",
    "quotation-item-size": "distribuciones de talla en items de cotización",
    "purchase-order": "órdenes de pedido",
    "specification": "especificaciones",
    "production-assignment": "asignaciones de producción",
    "progress-history": "historial de progreso",
    "payment": "pagos a trabajadores",
    "account-receivable": "cuentas por cobrar",
    "account-payable": "cuentas por pagar",
    "account-type": "tipos de cuenta",
    "chart-account": "plan de cuentas",
    "movement": "movimientos contables",
    "audit-log": "registros de auditoría",
    "measurement-control": "control de medidas",
    "period-planning": "planificaciones por período",
    "business": "empresas",
}

_ACTION_LABELS = {
    "read": "Ver/leer",
    "create": "Crear",
    "update": "Actualizar",
    "activate": "Activar",
    "deactivate": "Desactivar",
    "delete": "Eliminar",
    "export": "Exportar",
}


def _base_permissions(resource: str, resource_name: str) -> list[dict]:
    return [
        {"resource": resource, "action": action, "description": f"{_ACTION_LABELS[action]} {resource_name}"}
        for action in BASE_ACTIONS
    ]


def _wildcard_permission(resource: str, resource_name: str) -> dict:
    return {"resource": resource, "action": WILDCARD_ACTION, "description": f"Todos los permisos de {resource_name}"}


PERMISSIONS_CONFIG: list[dict] = [
    *[item for resource, name in RESOURCE_NAMES.items() for item in _base_permissions(resource, name)],
    *[_wildcard_permission(resource, name) for resource, name in RESOURCE_NAMES.items()],
]

ALL_RESOURCE_WILDCARDS = [f"{resource}:{WILDCARD_ACTION}" for resource in RESOURCE_NAMES]

ROLES_CONFIG: list[dict] = [
    {
        "name": "Super Administrador",
        "description": "Super Administrador con acceso completo y privilegios máximos al sistema",
        "is_default": False,
        "permissions": list(ALL_RESOURCE_WILDCARDS),
    },
    {
        "name": "Administrador",
        "description": "Administrador con acceso completo al sistema",
        "is_default": True,
        "permissions": list(ALL_RESOURCE_WILDCARDS),
    },
    {
        "name": "Asistente Administrativo",
        "description": "Asistente administrativo con permisos limitados para operaciones de apoyo al administrador",
        "is_default": False,
        "permissions": [
            "user:read",
            "role:read",
            "user:create",
            "user:update",
            "user:activate",
            "user:deactivate",
        ],
    },
]

# email and password come from ADMIN_EMAIL / ADMIN_PASSWORD
ADMIN_CONFIG: dict = {
    "name": "Administrador",
    "last_name": "Sistema",
    "role_names": ["Administrador"],
}
