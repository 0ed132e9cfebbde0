"""
External service connectors: WhatsApp messaging and object storage
"""
from marketplace.connectors.whatsapp_connector import WappiConnector
from marketplace.connectors.storage_connector import SupabaseStorageConnector, UPLOAD_FOLDERS

__all__ = ['WappiConnector', 'SupabaseStorageConnector', 'UPLOAD_FOLDERS']
