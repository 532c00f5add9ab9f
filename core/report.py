import datetime
import io
from typing import Iterable, List, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from standards.bs7671_tables import (
    CURRENT_CAPACITY,
    EDITION,
    FUSE_MAX_EARTH_LOOP_IMPEDANCE,
    MAX_EARTH_LOOP_IMPEDANCE,
    NOMINAL_VOLTAGE_TO_EARTH,
)

from .models import ComplianceResult

HEADER_FILL = PatternFill(start_color="DDDDDD", end_color="DDDDDD", fill_type="solid")
HEADER_FONT = Font(bold=True)


def results_to_dataframe(results: Iterable[ComplianceResult]) -> pd.DataFrame:
    records = [r.as_record() for r in results]
    if not records:
        return pd.DataFrame()
    return pd.DataFrame.from_records(records, columns=list(records[0]))


def _style_header(ws, row=1):
    for cell in ws[row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL


def build_workbook(results: List[ComplianceResult]) -> Workbook:
    wb = Workbook()

    # --- Sheet 1: Circuit schedule ---
    ws1 = wb.active
    ws1.title = "Circuits"
    records = [r.as_record() for r in results]
    if records:
        ws1.append(list(records[0]))
        _style_header(ws1)
    for record in records:
        ws1.append(list(record.values()))
    for col in ws1.columns:
        ws1.column_dimensions[col[0].column_letter].width = 15

    # --- Sheet 2: Recommendations ---
    ws2 = wb.create_sheet("Recommendations")
    ws2.append(["Circuit", "Recommendation"])
    _style_header(ws2)
    for result in results:
        for note in result.recommendations:
            ws2.append([result.specification.name, note])
    ws2.column_dimensions["A"].width = 20
    ws2.column_dimensions["B"].width = 100

    # --- Sheet 3: Appendix 4 reference ---
    ws3 = wb.create_sheet("Ref Appendix 4")
    ws3.append([f"{EDITION} - current-carrying capacity (A), 70°C thermoplastic"])
    methods = list(CURRENT_CAPACITY)
    ws3.append(["Size (mm2)"] + [f"Method {m.value}" for m in methods])
    _style_header(ws3, row=2)
    for size in CURRENT_CAPACITY[methods[0]]:
        ws3.append([size] + [CURRENT_CAPACITY[m].get(size) for m in methods])

    # --- Sheet 4: Table 41.3 reference ---
    ws4 = wb.create_sheet("Ref Table 41.3")
    ws4.append([f"Maximum Zs (ohm) at U0={NOMINAL_VOLTAGE_TO_EARTH:g}V"])
    ws4.append(["Curve", "In (A)", "Max Zs (ohm)"])
    _style_header(ws4, row=2)
    for (curve, rating, voltage), zs in MAX_EARTH_LOOP_IMPEDANCE.items():
        if voltage == NOMINAL_VOLTAGE_TO_EARTH:
            ws4.append([curve, rating, round(zs, 2)])
    for rating, zs in FUSE_MAX_EARTH_LOOP_IMPEDANCE.items():
        ws4.append(["gG (Table 41.2)", rating, zs])

    ws4.append([])
    ws4.append(["Generated:", datetime.datetime.now().strftime("%Y-%m-%d %H:%M")])
    return wb


def export_to_excel(results: List[ComplianceResult], target: Union[str, io.BytesIO, None] = None):
    """Saves the schedule to a path or buffer. Returns the bytes when no target is given."""
    wb = build_workbook(results)
    if target is None:
        output = io.BytesIO()
        wb.save(output)
        return output.getvalue()
    wb.save(target)
    return target
