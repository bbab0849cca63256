# app/shared/services/notification_client.py
import httpx
import logging
from typing import Dict

from app.config.settings import settings

logger = logging.getLogger(__name__)

class NotificationGateway:
    """Cliente HTTP para el proveedor externo de email/SMS"""
    
    def __init__(self):
        self.email_url = settings.email_api_url
        self.email_key = settings.email_api_key
        self.sms_url = settings.sms_api_url
        self.sms_key = settings.sms_api_key
        self.sender = settings.email_from
        self.timeout = settings.notification_timeout
    
    def _get_headers(self, api_key: str = None) -> Dict[str, str]:
        """Headers para autenticación"""
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        return headers
    
    def _post(self, url: str, api_key: str, payload: Dict[str, str]) -> bool:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=self._get_headers(api_key))
            if response.status_code in (200, 201, 202):
                return True
            logger.error(f"❌ Gateway respondió {response.status_code}: {response.text[:200]}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"❌ Error de comunicación con gateway de notificaciones: {e}")
            return False
    
    def send_email(self, to: str, subject: str, html: str) -> bool:
        """Enviar email; sin URL configurada se registra en el log (dry-run)"""
        if not self.email_url:
            logger.info(f"📧 [dry-run] Email a {to}: {subject}")
            return True
        
        logger.info(f"📧 Enviando email a {to}: {subject}")
        return self._post(self.email_url, self.email_key, {
            "from": self.sender,
            "to": to,
            "subject": subject,
            "html": html
        })
    
    def send_sms(self, to: str, message: str) -> bool:
        """Enviar SMS; sin URL configurada se registra en el log (dry-run)"""
        if not self.sms_url:
            logger.info(f"📱 [dry-run] SMS a {to}: {message}")
            return True
        
        logger.info(f"📱 Enviando SMS a {to}")
        return self._post(self.sms_url, self.sms_key, {
            "to": to,
            "message": message
        })
