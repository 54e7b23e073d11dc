# ddcore/geometry/__init__.py
