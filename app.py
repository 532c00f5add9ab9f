import streamlit as st
import pandas as pd
from config_logging.configure_logging import configure_logging
from core.models import (
    CircuitSpecification, CircuitClass, ConductorMaterial, EarthingSystem, InstallationMethod
)
from core.converters import design_current_from_power, convert_length_unit
from core.errors import CircuitValidationError
from standards.conduit import conduit_fill
from core.report import export_to_excel, results_to_dataframe
from standards.bs7671 import BS7671Calculator
from standards.bs7671_tables import EDITION, STANDARD_CONDUIT_SIZES

configure_logging()

# --- Page Config ---
st.set_page_config(
    page_title="Cable Calculator (BS 7671)",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

# --- Custom CSS ---
st.markdown("""
<style>
    .main-header { font-family: 'Inter', sans-serif; color: #1E3A8A; font-weight: 700; }
    .stDataFrame { border-radius: 10px; overflow: hidden; }
</style>
""", unsafe_allow_html=True)

REQUIREMENTS = [
    "high_inrush", "high_breaking_capacity", "ev_charging", "solar_inverters",
    "electronic_loads", "variable_frequency_drives",
]
METHOD_LABELS = {
    "A - enclosed in insulated wall": InstallationMethod.A,
    "B - in conduit/trunking on wall": InstallationMethod.B,
    "C - clipped direct": InstallationMethod.C,
    "D - in the ground": InstallationMethod.D,
    "E - free air / cable tray": InstallationMethod.E,
}

# --- Session State Init ---
if "results" not in st.session_state:
    st.session_state.results = []

calculator = BS7671Calculator()

# --- Sidebar ---
with st.sidebar:
    st.title("Supply")
    earthing = st.selectbox("Earthing arrangement", [e.value for e in EarthingSystem], index=1)
    fault_level = st.number_input("Prospective fault current (kA)", 0.1, 100.0, 6.0, 0.5)
    known_ze = st.toggle("Ze known", False)
    ze = st.number_input("Ze (Ω)", 0.0, 200.0, 0.35, 0.01) if known_ze else None
    st.markdown("---")
    st.caption(EDITION)

# --- Main Area ---
st.markdown("<h1 class='main-header'>⚡ Cable Sizing & Protection (BS 7671)</h1>", unsafe_allow_html=True)
st.markdown("---")

with st.expander("➕ Add Circuit", expanded=True):
    c_name, c_class = st.columns([3, 1])
    name = c_name.text_input("Circuit name", "Circuit 1")
    circuit_class = c_class.selectbox("Class", [c.value for c in CircuitClass], index=1)

    st.markdown("##### ⚡ Electrical")
    c_p1, c_p2, c_ph, c_fp = st.columns([1.5, 0.8, 0.8, 1])
    power = c_p1.number_input("Load", 0.0, step=0.1, format="%.2f", value=20.0)
    unit = c_p2.selectbox("Unit", ["A", "W", "KW", "HP", "KVA"])
    phases = c_ph.radio("Phases", [1, 3], horizontal=True)
    pf = c_fp.number_input("Power factor", 0.1, 1.0, 0.9, 0.05)

    st.markdown("##### 📏 Installation")
    c_L1, c_L2, c_M, c_mat = st.columns([1.5, 0.8, 2, 1])
    length = c_L1.number_input("Length", 0.1, step=1.0, value=10.0)
    l_unit = c_L2.selectbox("Unit", ["m", "ft", "yd"], key="length_unit")
    method_label = c_M.selectbox("Installation method", list(METHOD_LABELS), index=2)
    material = c_mat.selectbox("Conductor", [m.value for m in ConductorMaterial])

    c_T, c_G, c_I, c_B = st.columns(4)
    temp = c_T.number_input("Ambient (°C)", value=30.0, step=1.0)
    grouped = c_G.number_input("Grouped circuits", 1, 40, 1)
    insulated = c_I.slider("Route in insulation (%)", 0, 100, 0, 5)
    buried = c_B.toggle("Buried", False)
    soil = c_B.number_input("Soil resistivity (K·m/W)", 0.1, 10.0, 2.5, 0.1) if buried else 2.5

    c_R, c_U, c_S = st.columns([1, 1, 3])
    rcd = c_R.toggle("RCD required", False)
    upstream = c_U.number_input("Upstream device (A)", 0.0, step=1.0, help="0 if unknown")
    requirements = c_S.multiselect("Special requirements", REQUIREMENTS)

    st.write("")
    if st.button("Calculate & Add", type="primary", use_container_width=True):
        try:
            spec = CircuitSpecification(
                name=name,
                design_current=design_current_from_power(power, unit, phases, pf),
                length_m=convert_length_unit(length, l_unit),
                phases=phases,
                power_factor=pf,
                material=material,
                circuit_class=circuit_class,
                installation_method=METHOD_LABELS[method_label],
                ambient_temp_c=temp,
                grouped_circuits=grouped,
                insulation_fraction=insulated / 100,
                is_buried=buried,
                soil_resistivity=soil,
                earthing=earthing,
                special_requirements=tuple(requirements),
                rcd_required=rcd,
                external_loop_impedance=ze,
                upstream_rating=upstream or None,
            )
            st.session_state.results.append(calculator.calculate_circuit(spec, fault_level))
            st.rerun()
        except CircuitValidationError as e:
            st.error(f"{e.field or 'Input'}: {e}")

with st.expander("🧮 Conduit Fill"):
    c_cs, c_cd, c_cq = st.columns(3)
    conduit_size = c_cs.selectbox("Conduit (mm)", list(STANDARD_CONDUIT_SIZES), index=1)
    cable_diameter = c_cd.number_input("Cable overall diameter (mm)", 0.1, 100.0, 5.0, 0.1)
    cable_qty = c_cq.number_input("Number of cables", 1, 100, 3)
    fill = conduit_fill(conduit_size, [(cable_diameter, int(cable_qty))])
    (st.success if fill.compliant else st.warning)(
        f"Fill {fill.fill_percent:g} % of {fill.max_fill_percent:g} % allowed ({fill.regulation})"
    )
    for note in fill.recommendations:
        st.caption(note)

st.markdown("### 📋 Circuit Schedule")

results = st.session_state.results
tb1, tb2, _ = st.columns([1, 1, 4])
with tb1:
    if st.button("🗑️ Clear", type="secondary", use_container_width=True):
        st.session_state.results = []
        st.rerun()
with tb2:
    if results:
        st.download_button(
            "📥 Excel",
            data=export_to_excel(results),
            file_name="circuit_schedule_bs7671.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True
        )

if results:
    df = results_to_dataframe(results)
    st.dataframe(
        df.drop(columns=["Regulation"]),
        use_container_width=True,
        column_config={"Pass": st.column_config.CheckboxColumn("Pass")},
    )

    # --- Detail of the latest circuit ---
    latest = results[-1]
    st.markdown("---")
    st.subheader(f"🔎 {latest.specification.name}")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Cable", latest.cable.label)
    c2.metric("Iz", f"{latest.cable.derated_capacity:.1f} A")
    c3.metric("Voltage drop", f"{latest.voltage_drop.drop_percent:.2f} %",
              delta=f"limit {latest.voltage_drop.limit_percent:g} %", delta_color="off")
    c4.metric("Device", latest.device.label)
    if latest.earth_fault is not None:
        st.write(f"Zs = {latest.earth_fault.zs:.3f} Ω, CPC {latest.earth_fault.cpc_size_mm2:g} mm²")
    (st.success if latest.passed else st.error)("PASS" if latest.passed else "FAIL")
    st.caption(latest.regulation)
    for note in latest.recommendations:
        st.info(note)
else:
    st.info("No circuits yet.")
    st.dataframe(pd.DataFrame(columns=["Circuit", "Cable (mm2)", "Device", "VD (%)", "Pass"]))
