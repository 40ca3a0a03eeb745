"""
Display records for the search page.

Upstream records vary by endpoint, so the kind of each record is inferred
from the fields it carries:
- ``flight`` -> flight result
- ``airport_name`` -> airport
- ``airline_name`` -> airline

Only fields present in the record are rendered; missing values are
omitted rather than shown blank.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

Field = Tuple[str, str]

# (label, key) pairs rendered for departure/arrival blocks
LEG_FIELDS = (
    ('Airport', 'airport'),
    ('IATA', 'iata'),
    ('Terminal', 'terminal'),
    ('Gate', 'gate'),
    ('Scheduled', 'scheduled'),
    ('Estimated', 'estimated'),
    ('Actual', 'actual'),
)


def _present(value: Any) -> bool:
    return value is not None and value != '' and not isinstance(value, (dict, list))


def _fields(record: Mapping[str, Any], labels) -> List[Field]:
    return [(label, str(record[key])) for label, key in labels if _present(record.get(key))]


def _section(record: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = record.get(key)
    return value if isinstance(value, dict) else {}


@dataclass
class LegBlock:
    """Departure or arrival block of a flight."""
    label: str
    fields: List[Field] = field(default_factory=list)


@dataclass
class DisplayRecord:
    """One upstream record prepared for rendering."""
    kind: str
    title: str
    subtitle: Optional[str] = None
    details: List[Field] = field(default_factory=list)
    legs: List[LegBlock] = field(default_factory=list)


def infer_kind(record: Mapping[str, Any]) -> str:
    if 'flight' in record:
        return 'flight'
    if 'airport_name' in record:
        return 'airport'
    if 'airline_name' in record:
        return 'airline'
    return 'unknown'


def _leg_block(label: str, leg: Mapping[str, Any]) -> Optional[LegBlock]:
    fields = _fields(leg, LEG_FIELDS)
    if _present(leg.get('delay')):
        fields.append(('Delay', f'{leg["delay"]} min'))
    if not fields:
        return None
    return LegBlock(label=label, fields=fields)


def _flight_record(record: Mapping[str, Any]) -> DisplayRecord:
    flight = _section(record, 'flight')
    airline = _section(record, 'airline')

    title = flight.get('iata') or flight.get('icao') or flight.get('number') or 'Unknown flight'

    legs = []
    for label, key in (('Departure', 'departure'), ('Arrival', 'arrival')):
        block = _leg_block(label, _section(record, key))
        if block:
            legs.append(block)

    return DisplayRecord(
        kind='flight',
        title=str(title),
        subtitle=airline.get('name') or None,
        details=_fields(record, (('Status', 'flight_status'), ('Date', 'flight_date'))),
        legs=legs,
    )


def _airport_record(record: Mapping[str, Any]) -> DisplayRecord:
    codes = '/'.join(str(record[k]) for k in ('iata_code', 'icao_code') if _present(record.get(k)))
    return DisplayRecord(
        kind='airport',
        title=str(record['airport_name']),
        subtitle=codes or None,
        details=_fields(record, (('Country', 'country_name'), ('Timezone', 'timezone'))),
    )


def _airline_record(record: Mapping[str, Any]) -> DisplayRecord:
    codes = '/'.join(str(record[k]) for k in ('iata_code', 'icao_code') if _present(record.get(k)))
    return DisplayRecord(
        kind='airline',
        title=str(record['airline_name']),
        subtitle=codes or None,
        details=_fields(record, (('Country', 'country_name'), ('Status', 'status'))),
    )


def to_display_record(record: Mapping[str, Any]) -> DisplayRecord:
    """Convert one upstream record into its display form."""
    kind = infer_kind(record)
    if kind == 'flight':
        return _flight_record(record)
    if kind == 'airport':
        return _airport_record(record)
    if kind == 'airline':
        return _airline_record(record)

    return DisplayRecord(
        kind='unknown',
        title='Record',
        details=[(str(k), str(v)) for k, v in record.items() if _present(v)],
    )
