"""Waste / circular-economy records (smart bins, market prices, collector payouts)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .forest import GeoPoint


class WasteType(Enum):
    PLASTIC = "plastic"
    ORGANIC = "organic"
    GLASS = "glass"
    METAL = "metal"
    EWASTE = "ewaste"


@dataclass(frozen=True)
class SmartBin:
    id: str
    location: GeoPoint
    fill_level: float        # 0-100
    battery_level: float     # 0-100
    type: WasteType
    last_collection: str
    status: str = "online"   # "online", "offline", "maintenance"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SmartBin":
        return cls(
            id=str(d["id"]),
            location=GeoPoint.from_dict(d["location"]),
            fill_level=float(d["fill_level"]),
            battery_level=float(d["battery_level"]),
            type=WasteType(d["type"]),
            last_collection=str(d.get("last_collection", "")),
            status=str(d.get("status", "online")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location.as_dict(),
            "fill_level": self.fill_level,
            "battery_level": self.battery_level,
            "type": self.type.value,
            "last_collection": self.last_collection,
            "status": self.status,
        }


@dataclass(frozen=True)
class MarketPrice:
    material: WasteType
    price_per_kg: float
    trend: str = "stable"    # "up", "down", "stable"
    currency: str = "KES"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MarketPrice":
        return cls(
            material=WasteType(d["material"]),
            price_per_kg=float(d["price_per_kg"]),
            trend=str(d.get("trend", "stable")),
            currency=str(d.get("currency", "KES")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "material": self.material.value,
            "price_per_kg": self.price_per_kg,
            "trend": self.trend,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class WasteTransaction:
    id: str
    collector_id: str
    hub_id: str
    waste_type: WasteType
    weight_kg: float
    payout_amount: float
    timestamp: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WasteTransaction":
        return cls(
            id=str(d["id"]),
            collector_id=str(d["collector_id"]),
            hub_id=str(d["hub_id"]),
            waste_type=WasteType(d["waste_type"]),
            weight_kg=float(d["weight_kg"]),
            payout_amount=float(d["payout_amount"]),
            timestamp=str(d.get("timestamp", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "collector_id": self.collector_id,
            "hub_id": self.hub_id,
            "waste_type": self.waste_type.value,
            "weight_kg": self.weight_kg,
            "payout_amount": self.payout_amount,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class WasteDataInput:
    smart_bins: Tuple[SmartBin, ...] = ()
    market_prices: Tuple[MarketPrice, ...] = ()
    recent_transactions: Tuple[WasteTransaction, ...] = ()

    @property
    def total_weight_kg(self) -> float:
        return sum(t.weight_kg for t in self.recent_transactions)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WasteDataInput":
        return cls(
            smart_bins=tuple(SmartBin.from_dict(b) for b in d.get("smart_bins", [])),
            market_prices=tuple(MarketPrice.from_dict(p) for p in d.get("market_prices", [])),
            recent_transactions=tuple(
                WasteTransaction.from_dict(t) for t in d.get("recent_transactions", [])
            ),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "smart_bins": [b.as_dict() for b in self.smart_bins],
            "market_prices": [p.as_dict() for p in self.market_prices],
            "recent_transactions": [t.as_dict() for t in self.recent_transactions],
        }


@dataclass(frozen=True)
class WasteAnalysisSummary:
    efficiency_score: float          # 0-100
    fraud_risk_level: str            # "Low", "Medium", "High"
    suggested_route_optimization: str
    economic_value_generated: float
    carbon_offset_tonnes: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WasteAnalysisSummary":
        fraud = str(d["fraud_risk_level"])
        if fraud not in ("Low", "Medium", "High"):
            raise ValueError(f"unknown fraud_risk_level: {fraud!r}")
        return cls(
            efficiency_score=max(0.0, min(100.0, float(d["efficiency_score"]))),
            fraud_risk_level=fraud,
            suggested_route_optimization=str(d.get("suggested_route_optimization", "")),
            economic_value_generated=float(d.get("economic_value_generated", 0.0)),
            carbon_offset_tonnes=float(d.get("carbon_offset_tonnes", 0.0)),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "efficiency_score": self.efficiency_score,
            "fraud_risk_level": self.fraud_risk_level,
            "suggested_route_optimization": self.suggested_route_optimization,
            "economic_value_generated": self.economic_value_generated,
            "carbon_offset_tonnes": self.carbon_offset_tonnes,
        }


@dataclass(frozen=True)
class CircularEconomyResponse:
    summary: WasteAnalysisSummary
    actionable_insights: Tuple[str, ...] = ()
    timestamp: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CircularEconomyResponse":
        return cls(
            summary=WasteAnalysisSummary.from_dict(d["summary"]),
            actionable_insights=tuple(str(s) for s in d.get("actionable_insights") or ()),
            timestamp=str(d.get("timestamp", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.as_dict(),
            "actionable_insights": list(self.actionable_insights),
            "timestamp": self.timestamp,
        }
