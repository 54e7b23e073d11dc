# ddcore/io/__init__.py
