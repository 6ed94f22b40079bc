"""Charge un jeu de données de démonstration et affiche un jeton d'accès."""
from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from stockcount.core import security, services  # noqa: E402
from stockcount.core.models import CompanyInfo  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Insère des données de démonstration pour la toma física")
    parser.add_argument("--user", default="demo-user", help="Identifiant utilisateur (défaut: demo-user)")
    return parser.parse_args()


def seed(user_id: str) -> None:
    services.save_company_info(
        user_id,
        CompanyInfo(name="Ferretería Central", tax_id="101-00001-1", address="Av. Principal 12"),
    )
    principal = services.create_warehouse(user_id, "Almacén Principal")
    norte = services.create_warehouse(user_id, "Sucursal Norte")

    catalog = [
        ("TOR-001", "Tornillo hexagonal 3/8", "Ferretería", 120, 0.35),
        ("CLV-002", "Clavo de acero 2\"", "Ferretería", 800, 0.05),
        ("PIN-010", "Pintura acrílica blanca galón", "Acabados", 24, 9.75),
        ("CEM-050", "Cemento gris 42.5 kg", "Construcción", 60, 7.10),
    ]
    items = [
        services.create_item(
            user_id,
            warehouse_id=principal.id,
            sku=sku,
            name=name,
            category=category,
            current_stock=stock,
            cost_price=cost,
        )
        for sku, name, category, stock, cost in catalog
    ]

    today = date.today()
    services.record_movement(
        user_id,
        item_id=items[0].id,
        movement_type="transfer",
        quantity=40,
        movement_date=today - timedelta(days=10),
        from_warehouse_id=principal.id,
        to_warehouse_id=norte.id,
    )
    services.record_movement(
        user_id,
        item_id=items[2].id,
        movement_type="transfer",
        quantity=6,
        movement_date=today - timedelta(days=2),
        from_warehouse_id=principal.id,
        to_warehouse_id=norte.id,
    )
    services.record_movement(
        user_id,
        item_id=items[3].id,
        movement_type="addition",
        quantity=20,
        movement_date=today - timedelta(days=1),
    )


def main() -> None:
    args = parse_args()
    seed(args.user)
    print(f"Données de démonstration créées pour {args.user}.")
    print(f"Jeton d'accès: {security.create_access_token(args.user)}")


if __name__ == "__main__":
    main()
