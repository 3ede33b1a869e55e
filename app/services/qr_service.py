"""
QR code generation service
"""

import io
import qrcode

from app.core.config import settings

class QRService:
    """Service for generating join QR codes"""
    
    @staticmethod
    def get_join_url(join_code: str) -> str:
        """URL the QR code points participants to"""
        return f"{settings.BASE_URL}/join?code={join_code}"
    
    @staticmethod
    def generate_join_qr(join_code: str, format: str = 'PNG') -> bytes:
        """Generate QR code for the event's join page"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.get_join_url(join_code))
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        
        return buffer.getvalue()
