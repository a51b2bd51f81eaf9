"""
Message templates for customers and suppliers.

Supported placeholders:

- ``{{ var }}``: plain substitution
- ``{{money:var}}``: amount formatted for the reader's locale and currency
- ``{{date:var}}``, ``{{date:var:short}}``, ``{{date:var:long}}``
- ``{{phone:var}}``: phone formatted for the country (BR, CN, US)
"""

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import pytz

from backoffice.domain.value_objects import Money
from backoffice.services.i18n.languages import replace_variables

logger = logging.getLogger(__name__)

_MONEY_PATTERN = re.compile(r"\{\{money:(\w+)\}\}")
_DATE_PATTERN = re.compile(r"\{\{date:(\w+)(?::(\w+))?\}\}")
_PHONE_PATTERN = re.compile(r"\{\{phone:(\w+)\}\}")
_ANY_VARIABLE_PATTERN = re.compile(r"\{\{\s*(?:\w+:)?(\w+)(?::\w+)?\s*\}\}")

_PHONE_FORMATS = {
    "BR": (re.compile(r"(\+55)?(\d{2})(\d{4,5})(\d{4})"), "+55 ({1}) {2}-{3}", 10),
    "CN": (re.compile(r"(\+86)?(\d{3})(\d{4})(\d{4})"), "+86 {1}-{2}-{3}", 11),
    "US": (re.compile(r"(\+1)?(\d{3})(\d{3})(\d{4})"), "+1 ({1}) {2}-{3}", 10),
}

_MONTHS = {
    "pt-BR": [
        "janeiro", "fevereiro", "março", "abril", "maio", "junho",
        "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}

_DATE_FORMATS = {
    "pt-BR": {"short": "%d/%m/%Y", "medium": "%d/%m/%Y %H:%M"},
    "en": {"short": "%m/%d/%Y", "medium": "%m/%d/%Y %H:%M"},
    "zh-CN": {"short": "%Y/%m/%d", "medium": "%Y/%m/%d %H:%M"},
}


def format_money(amount: Any, language: str, currency: Optional[str] = None) -> str:
    return Money.for_language(amount, language, currency).format(language)


def format_date(value: Any, language: str, style: Optional[str] = None, timezone: Optional[str] = None) -> str:
    """
    Formats a datetime (or ISO string) for the reader's language.

    Args:
        value: datetime or ISO-8601 string
        language: Reader language
        style: None (medium), "short" or "long"
        timezone: Zone to convert aware datetimes to

    Returns:
        str: Formatted date
    """
    moment = datetime.fromisoformat(value) if isinstance(value, str) else value

    if timezone and moment.tzinfo is not None:
        moment = moment.astimezone(pytz.timezone(timezone))

    if style == "long":
        hour = moment.strftime("%H:%M")
        if language == "pt-BR":
            return f"{moment.day} de {_MONTHS['pt-BR'][moment.month - 1]} de {moment.year}, {hour}"
        if language == "zh-CN":
            return f"{moment.year}年{moment.month}月{moment.day}日 {hour}"
        return f"{_MONTHS['en'][moment.month - 1]} {moment.day}, {moment.year}, {hour}"

    formats = _DATE_FORMATS.get(language, _DATE_FORMATS["en"])
    return moment.strftime(formats["short" if style == "short" else "medium"])


def format_phone(phone: str, country: Optional[str]) -> str:
    """
    Formats a phone number for BR, CN or US; other countries are left untouched.
    """
    phone_format = _PHONE_FORMATS.get((country or "").upper())
    if not phone_format:
        return phone

    pattern, template, min_length = phone_format
    clean = re.sub(r"[^\d+]", "", phone)
    if len(clean) < min_length:
        return phone

    match = pattern.fullmatch(clean)
    if not match:
        return phone

    return template.format(*match.groups())


def format_template(
    content: str,
    variables: Dict[str, Any],
    language: str = "en",
    currency: Optional[str] = None,
    country: Optional[str] = None,
    timezone: Optional[str] = None,
) -> str:
    """
    Renders a template with the given variables.

    Placeholders whose variable is missing or has the wrong type are left as-is.

    Args:
        content: Template text
        variables: Values to substitute
        language: Reader language, drives money and date formats
        currency: Currency for ``money`` placeholders (default: variables["currency"] or the language's)
        country: Country for ``phone`` placeholders (default: variables["country"])
        timezone: Zone for ``date`` placeholders (default: variables["timezone"])

    Returns:
        str: Rendered text
    """
    currency = currency or variables.get("currency")
    country = country or variables.get("country")
    timezone = timezone or variables.get("timezone")

    def _money(match: re.Match) -> str:
        amount = variables.get(match.group(1))
        if isinstance(amount, bool) or amount is None:
            return match.group(0)
        try:
            return format_money(Decimal(str(amount)), language, currency)
        except (InvalidOperation, ValueError):
            return match.group(0)

    def _date(match: re.Match) -> str:
        value = variables.get(match.group(1))
        if not isinstance(value, (datetime, str)):
            return match.group(0)
        try:
            return format_date(value, language, match.group(2), timezone)
        except ValueError:
            return match.group(0)

    def _phone(match: re.Match) -> str:
        value = variables.get(match.group(1))
        return format_phone(value, country) if isinstance(value, str) else match.group(0)

    rendered = _MONEY_PATTERN.sub(_money, content)
    rendered = _DATE_PATTERN.sub(_date, rendered)
    rendered = _PHONE_PATTERN.sub(_phone, rendered)

    plain = {key: value for key, value in variables.items() if value is not None}
    return replace_variables(rendered, plain)


def extract_variables(content: str) -> List[str]:
    """Variable names referenced by a template, in order of first appearance."""
    seen: List[str] = []
    for name in _ANY_VARIABLE_PATTERN.findall(content):
        if name not in seen:
            seen.append(name)
    return seen


def validate_template(content: str, required_vars: List[str]) -> Dict[str, Any]:
    """
    Checks that a template references every required variable.

    Returns:
        Dict: ``{"is_valid": bool, "missing_variables": [...]}``
    """
    present = set(extract_variables(content))
    missing = [name for name in required_vars if name not in present]
    return {"is_valid": not missing, "missing_variables": missing}


TEMPLATES: Dict[str, Dict[str, Dict[str, str]]] = {
    "order_confirmation": {
        "pt-BR": {
            "subject": "Pedido Confirmado - #{{order_number}}",
            "content": (
                "🎉 Olá {{customer_name}}!\n\n"
                "Seu pedido #{{order_number}} foi confirmado!\n\n"
                "💰 Total: {{money:total_amount}}\n"
                "📦 Itens: {{item_count}}\n\n"
                "Estamos preparando tudo com carinho. "
                "Em breve você receberá o código de rastreamento.\n\n"
                "Obrigado pela sua compra!"
            ),
        },
        "en": {
            "subject": "Order Confirmed - #{{order_number}}",
            "content": (
                "🎉 Hello {{customer_name}}!\n\n"
                "Your order #{{order_number}} has been confirmed!\n\n"
                "💰 Total: {{money:total_amount}}\n"
                "📦 Items: {{item_count}}\n\n"
                "We are carefully preparing everything. You will receive the tracking code soon.\n\n"
                "Thank you for your purchase!"
            ),
        },
        "zh-CN": {
            "subject": "订单已确认 - #{{order_number}}",
            "content": (
                "🎉 您好 {{customer_name}}！\n\n"
                "您的订单 #{{order_number}} 已确认！\n\n"
                "💰 总计：{{money:total_amount}}\n"
                "📦 商品：{{item_count}}\n\n"
                "我们正在精心准备一切。您很快就会收到追踪代码。\n\n"
                "感谢您的购买！"
            ),
        },
    },
    "order_shipped": {
        "pt-BR": {
            "subject": "Pedido Enviado - #{{order_number}}",
            "content": (
                "📦 Olá {{customer_name}}!\n\n"
                "Seu pedido #{{order_number}} foi enviado!\n\n"
                "🚚 Código de rastreamento: {{tracking_code}}\n\n"
                "Acompanhe a entrega pelo site da transportadora."
            ),
        },
        "en": {
            "subject": "Order Shipped - #{{order_number}}",
            "content": (
                "📦 Hello {{customer_name}}!\n\n"
                "Your order #{{order_number}} has been shipped!\n\n"
                "🚚 Tracking code: {{tracking_code}}\n\n"
                "Follow the delivery on the carrier's website."
            ),
        },
        "zh-CN": {
            "subject": "订单已发货 - #{{order_number}}",
            "content": (
                "📦 您好 {{customer_name}}！\n\n"
                "您的订单 #{{order_number}} 已发货！\n\n"
                "🚚 追踪代码：{{tracking_code}}\n\n"
                "请在承运商网站上跟踪配送情况。"
            ),
        },
    },
    "supplier_new_order": {
        "zh-CN": {
            "subject": "新订单 - {{order_number}} | New Order - {{order_number}}",
            "content": (
                "尊敬的供应商 / Dear Supplier,\n\n"
                "我们收到了一个新的订单，需要您的处理。\n"
                "We have received a new order that requires your processing.\n\n"
                "订单详情 / Order Details:\n"
                "- 订单号 / Order Number: {{order_number}}\n"
                "- 客户 / Customer: {{customer_name}}\n"
                "- 总金额 / Total Amount: {{money:total_amount}}\n"
                "- 发货地址 / Shipping Address: {{shipping_address}}\n\n"
                "请确认收到此订单并提供预计处理时间。\n"
                "Please confirm receipt of this order and provide estimated processing time.\n\n"
                "此致敬礼 / Best regards"
            ),
        },
        "en": {
            "subject": "New Order - {{order_number}}",
            "content": (
                "Dear Supplier,\n\n"
                "We have received a new order that requires your processing.\n\n"
                "Order Details:\n"
                "- Order Number: {{order_number}}\n"
                "- Customer: {{customer_name}}\n"
                "- Total Amount: {{money:total_amount}}\n"
                "- Shipping Address: {{shipping_address}}\n\n"
                "Please confirm receipt of this order and provide estimated processing time.\n\n"
                "Best regards"
            ),
        },
    },
}


def get_template(name: str, language: str) -> Optional[Dict[str, str]]:
    """
    Built-in template in ``language``, falling back to English.

    Returns:
        Optional[Dict]: ``{"subject", "content", "language"}``, None for unknown templates
    """
    variants = TEMPLATES.get(name)
    if not variants:
        logger.warning(f"⚠️ Template not found: {name}")
        return None

    resolved = language if language in variants else "en"
    return {**variants[resolved], "language": resolved}


def render_template(
    name: str, language: str, variables: Dict[str, Any], **format_options
) -> Optional[Dict[str, str]]:
    """
    Renders subject and content of a built-in template.

    Returns:
        Optional[Dict]: ``{"subject", "content", "language"}``, None for unknown templates
    """
    template = get_template(name, language)
    if template is None:
        return None

    resolved = template["language"]
    return {
        "subject": format_template(template["subject"], variables, resolved, **format_options),
        "content": format_template(template["content"], variables, resolved, **format_options),
        "language": resolved,
    }
