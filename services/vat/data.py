"""
Zone definitions of the supported VAT regimes.

Each zone definition is plain data, turned into validated TaxZone objects by
``services.vat.catalog.build_zone``. Percentages are ``(number, start_date)``
or ``(number, start_date, end_date)`` tuples; end dates are exclusive.
"""

from __future__ import annotations

from typing import Any

CATALOG_VERSION = "2017.1"

# Rates labels shared by all zones.
LABELS: dict[str, str] = {
    "standard": "Standard",
    "intermediate": "Intermediate",
    "reduced": "Reduced",
    "second_reduced": "Second Reduced",
    "super_reduced": "Super Reduced",
    "special": "Special",
    "zero": "Zero",
    "hotel": "Hotel",
    "vat": "VAT",
}

IC_ZONE_ID = "ic"

ZoneDefinition = dict[str, Any]


def _zone(
    zone_id: str,
    label: str,
    territories: list[dict[str, str]],
    rates: dict[str, list[tuple[str, ...]]],
    default: str = "standard",
) -> ZoneDefinition:
    return {
        "id": zone_id,
        "label": label,
        "display_label": LABELS["vat"],
        "territories": territories,
        "rates": [
            {
                "id": rate_id,
                "label": LABELS[rate_id],
                "percentages": percentages,
                "default": rate_id == default,
            }
            for rate_id, percentages in rates.items()
        ],
    }


SWISS_ZONES: list[ZoneDefinition] = [
    _zone(
        "ch",
        "Switzerland",
        [
            {"country_code": "CH"},
            {"country_code": "LI"},
            # Büsingen.
            {"country_code": "DE", "included_postal_codes": "78266"},
            # Lake Lugano.
            {"country_code": "IT", "included_postal_codes": "22060"},
        ],
        {
            "standard": [("0.08", "2011-01-01")],
            "hotel": [("0.038", "2011-01-01")],
            "reduced": [("0.025", "2011-01-01")],
        },
    ),
]

IC_ZONE: ZoneDefinition = {
    "id": IC_ZONE_ID,
    "label": "Intra-Community Supply",
    "display_label": "Intra-Community Supply",
    # Placeholder territory, never matched.
    "territories": [{"country_code": "EU"}],
    "rates": [
        {
            "id": IC_ZONE_ID,
            "label": "Intra-Community Supply",
            "percentages": [("0", "1970-01-01")],
            "default": True,
        },
    ],
}

EU_ZONES: list[ZoneDefinition] = [
    _zone(
        "at",
        "Austria",
        # Austria without Jungholz and Mittelberg.
        [{"country_code": "AT", "excluded_postal_codes": "6691, 6991:6993"}],
        {
            "standard": [("0.2", "1995-01-01")],
            "intermediate": [("0.13", "2016-01-01")],
            "reduced": [("0.1", "1995-01-01")],
        },
    ),
    _zone(
        "be",
        "Belgium",
        [{"country_code": "BE"}],
        {
            "standard": [("0.21", "1996-01-01")],
            "intermediate": [("0.12", "1992-04-01")],
            "reduced": [("0.06", "1971-01-01")],
            "zero": [("0", "1971-01-01")],
        },
    ),
    _zone(
        "bg",
        "Bulgaria",
        [{"country_code": "BG"}],
        {
            "standard": [("0.2", "2007-01-01")],
            "reduced": [("0.09", "2011-04-01")],
        },
    ),
    _zone(
        "cy",
        "Cyprus",
        [{"country_code": "CY"}],
        {
            "standard": [("0.19", "2014-01-13")],
            "intermediate": [("0.09", "2014-01-13")],
            "reduced": [("0.05", "2004-05-01")],
        },
    ),
    _zone(
        "cz",
        "Czech Republic",
        [{"country_code": "CZ"}],
        {
            "standard": [("0.21", "2013-01-01")],
            "reduced": [("0.15", "2013-01-01")],
            "super_reduced": [("0.1", "2015-01-01")],
            "zero": [("0", "2004-05-01")],
        },
    ),
    _zone(
        "de",
        "Germany",
        [
            # Germany without Heligoland and Büsingen.
            {"country_code": "DE", "excluded_postal_codes": "27498, 78266"},
            # Austria (Jungholz and Mittelberg).
            {"country_code": "AT", "included_postal_codes": "6691, 6991:6993"},
        ],
        {
            "standard": [("0.19", "2007-01-01")],
            "reduced": [("0.07", "1983-07-01")],
        },
    ),
    _zone(
        "dk",
        "Denmark",
        [{"country_code": "DK"}],
        {
            "standard": [("0.25", "1992-01-01")],
            "zero": [("0", "1973-01-01")],
        },
    ),
    _zone(
        "ee",
        "Estonia",
        [{"country_code": "EE"}],
        {
            "standard": [("0.2", "2009-07-01")],
            "reduced": [("0.09", "2009-01-01")],
        },
    ),
    _zone(
        "es",
        "Spain",
        # Spain without Canary Islands, Ceuta and Melilla.
        [{"country_code": "ES", "excluded_postal_codes": "/(35|38|51|52)[0-9]{3}/"}],
        {
            "standard": [("0.21", "2012-09-01")],
            "reduced": [("0.1", "2012-09-01")],
            "super_reduced": [("0.04", "1995-01-01")],
        },
    ),
    _zone(
        "fi",
        "Finland",
        # Finland without Åland Islands.
        [{"country_code": "FI", "excluded_postal_codes": "22000:22999"}],
        {
            "standard": [("0.24", "2013-01-01")],
            "intermediate": [("0.14", "2013-01-01")],
            "reduced": [("0.1", "2013-01-01")],
        },
    ),
    _zone(
        "fr",
        "France",
        [
            # France without Corsica.
            {"country_code": "FR", "excluded_postal_codes": "/(20)[0-9]{3}/"},
            {"country_code": "MC"},
        ],
        {
            "standard": [("0.2", "2014-01-01")],
            "intermediate": [("0.1", "2014-01-01")],
            "reduced": [("0.055", "1982-07-01")],
            "super_reduced": [("0.021", "1986-07-01")],
        },
    ),
    _zone(
        "fr_h",
        "France (Corsica)",
        [{"country_code": "FR", "included_postal_codes": "/(20)[0-9]{3}/"}],
        {
            "standard": [("0.2", "2014-01-01")],
            "special": [("0.1", "2014-01-01")],
            "reduced": [("0.021", "1997-09-01")],
            "super_reduced": [("0.009", "1972-04-01")],
        },
    ),
    _zone(
        "gb",
        "United Kingdom",
        [{"country_code": "GB"}, {"country_code": "IM"}],
        {
            "standard": [("0.2", "2011-01-04")],
            "reduced": [("0.05", "1997-09-01")],
            "zero": [("0", "1973-01-01")],
        },
    ),
    _zone(
        "gr",
        "Greece",
        # Greece without Thassos, Samothrace, Skiros, Northern Sporades,
        # Lesbos, Chios, The Cyclades and The Dodecanese.
        [
            {
                "country_code": "GR",
                "excluded_postal_codes": (
                    "/640 ?04|680 ?02|340 ?07|((370|811|821|840|851) ?[0-9]{2})/"
                ),
            },
        ],
        {
            "standard": [("0.23", "2010-07-01", "2016-06-01"), ("0.24", "2016-06-01")],
            "intermediate": [("0.13", "2011-01-01")],
            "reduced": [("0.06", "2015-07-01")],
        },
    ),
    _zone(
        "hr",
        "Croatia",
        [{"country_code": "HR"}],
        {
            "standard": [("0.25", "2013-07-01")],
            "reduced": [("0.13", "2014-01-01")],
            "super_reduced": [("0.05", "2014-01-01")],
            "zero": [("0", "2013-07-01")],
        },
    ),
    _zone(
        "hu",
        "Hungary",
        [{"country_code": "HU"}],
        {
            "standard": [("0.27", "2012-01-01")],
            "intermediate": [("0.18", "2009-07-01")],
            "reduced": [("0.05", "2004-05-01")],
        },
    ),
    _zone(
        "ie",
        "Ireland",
        [{"country_code": "IE"}],
        {
            "standard": [("0.23", "2012-01-01")],
            "reduced": [("0.135", "2003-01-01")],
            "second_reduced": [("0.09", "2011-07-01")],
            "super_reduced": [("0.048", "2005-01-01")],
            "zero": [("0", "1972-04-01")],
        },
    ),
    _zone(
        "it",
        "Italy",
        # Italy without Livigno, Campione d'Italia and Lake Lugano.
        [{"country_code": "IT", "excluded_postal_codes": "23030, 22060"}],
        {
            "standard": [("0.22", "2013-10-01")],
            "reduced": [("0.1", "1995-02-24")],
            "super_reduced": [("0.04", "1989-01-01")],
        },
    ),
    _zone(
        "lt",
        "Lithuania",
        [{"country_code": "LT"}],
        {
            "standard": [("0.21", "2009-09-01")],
            "intermediate": [("0.09", "2004-05-01")],
            "reduced": [("0.05", "2004-05-01")],
        },
    ),
    _zone(
        "lu",
        "Luxembourg",
        [{"country_code": "LU"}],
        {
            "standard": [("0.17", "2015-01-01")],
            "intermediate": [("0.14", "2015-01-01")],
            "reduced": [("0.08", "2015-01-01")],
            "super_reduced": [("0.03", "1983-07-01")],
        },
    ),
    _zone(
        "lv",
        "Latvia",
        [{"country_code": "LV"}],
        {
            "standard": [("0.21", "2012-07-01")],
            "reduced": [("0.12", "2011-01-01")],
        },
    ),
    _zone(
        "mt",
        "Malta",
        [{"country_code": "MT"}],
        {
            "standard": [("0.18", "2004-05-01")],
            "intermediate": [("0.07", "2011-01-01")],
            "reduced": [("0.05", "2004-05-01")],
        },
    ),
    _zone(
        "nl",
        "Netherlands",
        [{"country_code": "NL"}],
        {
            "standard": [("0.21", "2012-10-01")],
            "reduced": [("0.06", "1986-10-01")],
        },
    ),
    _zone(
        "pl",
        "Poland",
        [{"country_code": "PL"}],
        {
            "standard": [("0.23", "2011-01-01")],
            "intermediate": [("0.08", "2011-01-01")],
            "reduced": [("0.05", "2011-01-01")],
        },
    ),
    _zone(
        "pt",
        "Portugal",
        # Portugal without Azores and Madeira.
        [{"country_code": "PT", "excluded_postal_codes": "/(9)[0-9]{3}-[0-9]{3}/"}],
        {
            "standard": [("0.23", "2011-01-01")],
            "intermediate": [("0.13", "2010-07-01")],
            "reduced": [("0.06", "2010-07-01")],
        },
    ),
    _zone(
        "pt_30",
        "Portugal (Madeira)",
        [{"country_code": "PT", "included_postal_codes": "/(9)[5-9][0-9]{2}-[0-9]{3}/"}],
        {
            "standard": [("0.22", "2012-04-01")],
            "intermediate": [("0.12", "2012-04-01")],
            "reduced": [("0.05", "2012-04-01")],
        },
    ),
    _zone(
        "ro",
        "Romania",
        [{"country_code": "RO"}],
        {
            "standard": [("0.20", "2016-01-01", "2017-01-01"), ("0.19", "2017-01-01")],
            "intermediate": [("0.09", "2008-12-01")],
            "reduced": [("0.05", "2008-12-01")],
        },
    ),
    _zone(
        "se",
        "Sweden",
        [{"country_code": "SE"}],
        {
            "standard": [("0.25", "1995-01-01")],
            "intermediate": [("0.12", "1995-01-01")],
            "reduced": [("0.06", "1996-01-01")],
        },
    ),
    _zone(
        "si",
        "Slovenia",
        [{"country_code": "SI"}],
        {
            "standard": [("0.22", "2013-07-01")],
            "reduced": [("0.095", "2013-07-01")],
        },
    ),
    _zone(
        "sk",
        "Slovakia",
        [{"country_code": "SK"}],
        {
            "standard": [("0.2", "2011-01-01")],
            "reduced": [("0.1", "2011-01-01")],
        },
    ),
    IC_ZONE,
]
