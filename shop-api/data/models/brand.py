"""
Brand Data Model
"""
import uuid
from datetime import datetime
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

@dataclass
class Brand:
    """Brand Model"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: bool = True
    seo: Dict[str, Any] = field(default_factory=dict)
    products_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "slug": self.slug, "logo": self.logo}
