from gym_api.core.stock_rules import derive_status, next_status_fields


def test_zero_stock_is_out_of_stock():
    assert derive_status("Activo", 0, "Activo") == "Agotado"
    assert derive_status("Inactivo", 0, "Inactivo") == "Agotado"


def test_restock_restores_previous_status():
    assert derive_status("Agotado", 3, "Activo") == "Activo"
    assert derive_status("Agotado", 3, "Inactivo") == "Inactivo"
    assert derive_status("Agotado", 3, None) == "Activo"


def test_status_kept_while_stock_remains():
    assert derive_status("Activo", 10, "Activo") == "Activo"
    assert derive_status("Cancelado", 2, "Activo") == "Cancelado"


def test_running_out_remembers_status_for_restock():
    assert next_status_fields("Inactivo", "Inactivo", 0) == ("Agotado", "Inactivo")
    assert next_status_fields("Agotado", "Inactivo", 4) == ("Inactivo", "Inactivo")
