# automodel/methods/__init__.py
