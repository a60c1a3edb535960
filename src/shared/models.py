"""Import every app's table models so they register on SQLModel.metadata."""

import importlib

from src.core.utils.utils import get_app_modules

for modules in get_app_modules("models").values():
    for module in modules:
        importlib.import_module(module)
