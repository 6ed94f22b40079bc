#!/usr/bin/env python3
"""Prépare l'environnement virtuel puis lance l'API de toma física."""
from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path
from subprocess import TimeoutExpired

ROOT_DIR = Path(__file__).resolve().parents[1]
VENV_DIR = ROOT_DIR / ".venv"
LOGGER = logging.getLogger(__name__)

logging.basicConfig(level=logging.INFO, format="%(message)s")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prépare et lance l'API FastAPI de toma física en mode développement",
    )
    parser.add_argument("--port", type=int, default=8000, help="Port de l'API (défaut: 8000)")
    parser.add_argument("--host", default="127.0.0.1", help="Adresse d'écoute d'uvicorn (défaut: 127.0.0.1)")
    parser.add_argument("--skip-install", action="store_true", help="Ne pas installer le paquet (pip install -e)")
    parser.add_argument("--skip-tests", action="store_true", help="Ne pas exécuter pytest avant le lancement")
    return parser.parse_args()


def _venv_python() -> Path:
    if os.name == "nt":
        return VENV_DIR / "Scripts" / "python.exe"
    return VENV_DIR / "bin" / "python"


def run_step(description: str, command: list[str]) -> None:
    LOGGER.info("➡️  %s : %s", description, " ".join(command))
    subprocess.run(command, cwd=str(ROOT_DIR), check=True)


def main() -> int:
    args = parse_args()
    if not VENV_DIR.exists():
        run_step("Création de l'environnement virtuel", [sys.executable, "-m", "venv", str(VENV_DIR)])

    python_bin = _venv_python()
    if not python_bin.exists():
        raise SystemExit("Python de l'environnement virtuel introuvable. Vérifiez la création de .venv.")

    if not args.skip_install:
        run_step("Installation des dépendances", [str(python_bin), "-m", "pip", "install", "-e", ".[test]"])

    if not args.skip_tests:
        run_step("Exécution des tests", [str(python_bin), "-m", "pytest", "stockcount/tests"])

    command = [str(python_bin), "-m", "stockcount", "--reload", "--host", args.host, "--port", str(args.port)]
    LOGGER.info("➡️  Lancement de l'API : %s", " ".join(command))
    process = subprocess.Popen(command, cwd=str(ROOT_DIR))
    try:
        return process.wait()
    except KeyboardInterrupt:
        LOGGER.info("⏹️  Arrêt de l'API...")
        process.terminate()
        try:
            return process.wait(timeout=10)
        except TimeoutExpired:
            process.kill()
            return process.wait()


if __name__ == "__main__":
    raise SystemExit(main())
