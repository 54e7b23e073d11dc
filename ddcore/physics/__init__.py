# ddcore/physics/__init__.py
