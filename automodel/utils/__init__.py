# automodel/utils/__init__.py
