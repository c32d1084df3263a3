"""Tank level control — explain an alarm block against a live snapshot.

A level transmitter feeds a REAL tag; the SCL block sets the fill pump,
raises a high alarm and computes the fill ratio.  The snapshot below is
what the HMI backend would hand over after a refresh.
"""

from sclx.analyze import analyze

CODE = """
// Tank 1 level handling
Ratio := Level / Capacity * 100;

IF Level > High_Limit AND NOT Alarm_Ack THEN
    Alarm_High := TRUE;
    Pump_Fill := FALSE;
ELSIF Level < Low_Limit THEN
    Pump_Fill := TRUE;
ELSE
    Alarm_High := FALSE;
END_IF;
"""

SNAPSHOT = {
    "Level":      {"value": "87.5",  "data_type": "REAL", "address": "%MD100"},
    "Capacity":   {"value": "100",   "data_type": "REAL", "address": "%MD104"},
    "High_Limit": {"value": "80",    "data_type": "REAL", "address": "%MD108"},
    "Low_Limit":  {"value": "20",    "data_type": "REAL", "address": "%MD112"},
    "Alarm_Ack":  {"value": "FALSE", "data_type": "BOOL", "address": "%M10.0"},
}


if __name__ == "__main__":
    result = analyze(CODE, SNAPSHOT)

    print(f"Tipo: {result.classified_type.value}")
    print(f"Resumo: {result.summary}")
    print("Tags:", ", ".join(r.name for r in result.tags_referenced))
    print()
    print(result.narrative)
