"""Process-wide service instances.

create_app() builds one ServiceRegistry and stores it on
``app.extensions["leaddesk"]``. Blueprints reach it through
get_services(); tests build their own isolated services instead.
"""

from flask import current_app

from leaddesk.services.leads_service import LeadsService
from leaddesk.services.messages_service import MessagesService
from leaddesk.services.products_service import ProductsService

EXTENSION_KEY = "leaddesk"


class ServiceRegistry:
    def __init__(self, leads=None, messages=None, products=None):
        self.leads = leads or LeadsService()
        self.messages = messages or MessagesService()
        self.products = products or ProductsService()

    def clear_caches(self):
        self.leads.clear_cache()
        self.messages.clear_cache()


def init_services(app, registry=None):
    app.extensions[EXTENSION_KEY] = registry or ServiceRegistry()
    return app.extensions[EXTENSION_KEY]


def get_services():
    return current_app.extensions[EXTENSION_KEY]
