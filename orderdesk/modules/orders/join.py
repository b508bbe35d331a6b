"""
Order Join
==========

Denormalizes orders into display rows by resolving each order's user and
delivery address from the latest users/addresses snapshots.

A foreign key with no matching record is not an error: the row is kept and
a sentinel string stands in for the missing value.
"""

import re
from datetime import date, datetime, timezone

# Firestore timestamps carry up to nanoseconds; fromisoformat wants exactly microseconds
_SECONDS_FRACTION = re.compile(r'(\d{2}:\d{2}:\d{2})\.(\d+)')

UNKNOWN_USER = 'Unknown User'
UNKNOWN_ADDRESS = 'Unknown Address'
INVALID_DATE = 'Invalid Date'

STATUS_PENDING = 'Pending'
STATUS_DELIVERED = 'Delivered'


def _as_dict(record):
    """Accept Document objects or plain dicts carrying an 'id' key"""
    if hasattr(record, 'to_dict'):
        return record.to_dict()
    return dict(record)


def _index_by_id(records):
    # First match wins when ids repeat
    index = {}
    for record in records:
        row = _as_dict(record)
        index.setdefault(row.get('id'), row)
    return index


def _microseconds(match):
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def _parse_date(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as stored by JavaScript clients
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, dict) and 'seconds' in value:
        seconds = value.get('seconds') or 0
        nanos = value.get('nanoseconds', value.get('nanos', 0)) or 0
        return datetime.fromtimestamp(int(seconds) + int(nanos) / 1e9, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        text = _SECONDS_FRACTION.sub(_microseconds, text)
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        for pattern in ('%m/%d/%Y', '%Y/%m/%d', '%d %B %Y', '%B %d, %Y'):
            try:
                return datetime.strptime(text, pattern)
            except ValueError:
                continue
    return None


def format_order_date(value, date_format=None):
    """
    Format an order date for display.

    Defaults to a US short date ("1/5/2024"). Anything that cannot be read
    as a date renders as "Invalid Date" rather than raising.
    """
    parsed = _parse_date(value)
    if parsed is None:
        return INVALID_DATE
    if date_format:
        return parsed.strftime(date_format)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def format_address(address):
    return f"{address.get('street', '')}, {address.get('city', '')}"


def enrich_order(order, users_by_id, addresses_by_id, date_format=None):
    row = _as_dict(order)
    user = users_by_id.get(row.get('userId'))
    address = addresses_by_id.get(row.get('addressId'))

    row['username'] = user.get('email') if user else UNKNOWN_USER
    row['userAddress'] = format_address(address) if address else UNKNOWN_ADDRESS
    row['date'] = format_order_date(row.get('date'), date_format)
    return row


def enrich_orders(orders, users, addresses, date_format=None):
    """
    Join orders to their user and address.

    Returns one row per order, in the orders snapshot's order, with the
    order's id preserved.
    """
    users_by_id = _index_by_id(users)
    addresses_by_id = _index_by_id(addresses)
    return [enrich_order(order, users_by_id, addresses_by_id, date_format) for order in orders]


def _item_name(item):
    if isinstance(item, dict):
        return item.get('name', '')
    return item


def item_names(row):
    return ', '.join(str(_item_name(item)) for item in row.get('items') or [])


def item_count(row):
    return len(row.get('items') or [])


def partition_rows(rows):
    """Split rows by status. Every row lands in exactly one bucket."""
    buckets = {'pending': [], 'delivered': [], 'other': []}
    for row in rows:
        status = row.get('status')
        if status == STATUS_PENDING:
            buckets['pending'].append(row)
        elif status == STATUS_DELIVERED:
            buckets['delivered'].append(row)
        else:
            buckets['other'].append(row)
    return buckets
