"""QR payload encoding and image rendering."""
import base64
import binascii
import io
import json
import uuid
from dataclasses import dataclass
from datetime import datetime

import qrcode

from edusphere.services.errors import InvalidPayloadError
from edusphere.utils.time_utils import to_iso_z, parse_iso

PAYLOAD_FIELDS = ('sid', 'nonce', 'exp')

@dataclass(frozen=True)
class ScanPayload:
    """Contents of one rotating QR code."""
    sid: str
    nonce: str
    exp: str
    
    @property
    def expires_at(self) -> datetime:
        return parse_iso(self.exp)
    
    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

class QRService:
    """Service for QR code operations."""
    
    @staticmethod
    def new_session_id() -> str:
        return str(uuid.uuid4())
    
    @staticmethod
    def new_nonce() -> str:
        return str(uuid.uuid4())
    
    @staticmethod
    def build_payload(session_id: str, nonce: str, expires_at: datetime) -> ScanPayload:
        return ScanPayload(sid=session_id, nonce=nonce, exp=to_iso_z(expires_at))
    
    @staticmethod
    def encode_payload(payload: ScanPayload) -> str:
        """base64(JSON) with exactly the sid, nonce and exp fields."""
        data = json.dumps(
            {'sid': payload.sid, 'nonce': payload.nonce, 'exp': payload.exp},
            separators=(',', ':')
        )
        return base64.b64encode(data.encode('utf-8')).decode('ascii')
    
    @staticmethod
    def decode_payload(qr_data: str) -> ScanPayload:
        """
        Decode scanned text back into a payload.
        Raises InvalidPayloadError for anything that is not a well-formed code.
        """
        if not isinstance(qr_data, str) or not qr_data.strip():
            raise InvalidPayloadError()
        
        try:
            raw = base64.b64decode(qr_data.strip(), validate=True)
            data = json.loads(raw.decode('utf-8'))
        except (binascii.Error, ValueError, UnicodeDecodeError):
            raise InvalidPayloadError()
        
        if not isinstance(data, dict):
            raise InvalidPayloadError()
        
        for field in PAYLOAD_FIELDS:
            if not isinstance(data.get(field), str) or not data[field]:
                raise InvalidPayloadError()
        
        try:
            parse_iso(data['exp'])
        except ValueError:
            raise InvalidPayloadError()
        
        return ScanPayload(sid=data['sid'], nonce=data['nonce'], exp=data['exp'])
    
    @staticmethod
    def render_qr_image(qr_string: str) -> str:
        """Render a QR code as a PNG data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(qr_string)
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()
        
        return f"data:image/png;base64,{img_str}"

encode_payload = QRService.encode_payload
decode_payload = QRService.decode_payload
