# trans_vault/presentation/__init__.py
