# trans_vault/__main__.py
from trans_vault.presentation.cli.main import app

if __name__ == "__main__":
    app()
