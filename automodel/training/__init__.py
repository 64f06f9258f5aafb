# automodel/training/__init__.py
