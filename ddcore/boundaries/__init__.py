# ddcore/boundaries/__init__.py
