import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote

# Characters JavaScript's encodeURIComponent leaves untouched (besides alphanumerics).
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass
class ECPayConfig:
    merchant_id: str
    hash_key: str
    hash_iv: str
    payment_url: str
    return_url: str = ""        # server-to-server notify endpoint
    client_back_url: str = ""   # where the browser lands after checkout


def _stringify(v) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return "" if v is None else str(v)


def check_mac_value(params: dict, hash_key: str, hash_iv: str) -> str:
    """ECPay CheckMacValue: SHA-256 over the sorted, key-wrapped, url-encoded, lower-cased query."""
    filtered = {k: v for k, v in params.items() if k != "CheckMacValue"}
    query = "&".join(f"{k}={_stringify(filtered[k])}" for k in sorted(filtered))
    raw = f"HashKey={hash_key}&{query}&HashIV={hash_iv}"
    encoded = quote(raw, safe=_URI_COMPONENT_SAFE).lower()
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest().upper()


def verify_check_mac_value(params: dict, hash_key: str, hash_iv: str) -> bool:
    received = str(params.get("CheckMacValue") or "")
    if not received:
        return False
    expected = check_mac_value(params, hash_key, hash_iv)
    return hmac.compare_digest(expected, received.upper())


def merchant_trade_date(now: datetime) -> str:
    return now.strftime("%Y/%m/%d %H:%M:%S")


def build_payment_form(cfg: ECPayConfig, *, trade_no: str, amount: int, item_name: str,
                       trade_desc: str, now: datetime) -> dict:
    params = {
        "ChoosePayment": "ALL",
        "EncryptType": 1,
        "ItemName": item_name,
        "MerchantID": cfg.merchant_id,
        "MerchantTradeDate": merchant_trade_date(now),
        "MerchantTradeNo": trade_no,
        "PaymentType": "aio",
        "ReturnURL": cfg.return_url,
        "TotalAmount": int(amount),
        "TradeDesc": trade_desc,
    }
    if cfg.client_back_url:
        params["ClientBackURL"] = cfg.client_back_url
    params["CheckMacValue"] = check_mac_value(params, cfg.hash_key, cfg.hash_iv)
    return {"action": cfg.payment_url, "data": params}
