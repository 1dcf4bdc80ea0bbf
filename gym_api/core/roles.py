from enum import Enum


class Role(str, Enum):
    admin = "Administrador"
    collaborator = "Colaborador"


ADMIN_ROLES = {Role.admin}
STAFF_ROLES = {Role.admin, Role.collaborator}
