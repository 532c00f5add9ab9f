import datetime
import logging
import re
import sys

from config_logging.configure_logging import configure_logging
from core.converters import design_current_from_power, convert_length_unit
from core.errors import CircuitValidationError
from core.models import CircuitSpecification, CircuitClass, EarthingSystem
from core.report import export_to_excel
from standards.bs7671 import BS7671Calculator


def _split_value_unit(text, default_unit):
    match = re.match(r"([0-9\.]+)\s*([a-zA-Z]+)", text)
    if match:
        return float(match.group(1)), match.group(2)
    return float(text), default_unit


def get_supply_params():
    print("\n--- Supply ---")
    print("Earthing: (1) TN-S, (2) TN-C-S, (3) TT")
    choice = input("Select earthing [2]: ").strip()
    earthing = {"1": EarthingSystem.TN_S, "3": EarthingSystem.TT}.get(choice, EarthingSystem.TN_C_S)

    try:
        fault_level = float(input("Prospective fault current (kA) [6]: ") or 6.0)
    except ValueError:
        fault_level = 6.0

    ze_str = input("Ze (ohm), blank if unknown: ").strip()
    ze = float(ze_str) if ze_str else None
    return earthing, fault_level, ze


def get_circuits_input(earthing, ze):
    circuits = []
    print("\n--- Circuits ---")

    while True:
        print(f"\n[Circuit #{len(circuits)+1}]")
        name = input("Circuit name: ").strip()
        if not name:
            break

        try:
            phases = int(input("Phases (1 or 3) [1]: ") or 1)
            pf = float(input("Power factor [0.9]: ") or 0.9)
            val, unit = _split_value_unit(input("Load (e.g. 20 A, 7.2 KW, 5 HP, 10 KVA): ").strip(), "A")

            print("Class: (1) lighting, (2) power, (3) motor")
            circuit_class = {"1": CircuitClass.LIGHTING, "3": CircuitClass.MOTOR}.get(
                input("Select class [2]: ").strip(), CircuitClass.POWER
            )

            l_val, l_unit = _split_value_unit(input("Length (e.g. 50 m, 120 ft): ").strip(), "m")
            method = (input("Installation method A-E [C]: ").strip() or "C").upper()
            temp = float(input("Ambient temperature (°C) [30]: ") or 30.0)
            grouped = int(input("Circuits grouped together [1]: ") or 1)
            upstream_str = input("Upstream device rating (A), blank if unknown: ").strip()

            spec = CircuitSpecification(
                name=name,
                design_current=design_current_from_power(val, unit, phases, pf),
                length_m=convert_length_unit(l_val, l_unit),
                phases=phases,
                power_factor=pf,
                circuit_class=circuit_class,
                installation_method=method,
                ambient_temp_c=temp,
                grouped_circuits=grouped,
                earthing=earthing,
                external_loop_impedance=ze,
                upstream_rating=float(upstream_str) if upstream_str else None,
            )
            circuits.append(spec)

        except (ValueError, CircuitValidationError) as e:
            print(f"Input error: {e}. Try again.")

        more = input("Add another circuit? (y/n): ").lower()
        if more != 'y':
            break

    return circuits


def main():
    configure_logging(level=logging.WARNING)
    print("==========================================================")
    print(" CABLE SIZING & PROTECTION CALCULATOR (BS 7671)")
    print("==========================================================")

    earthing, fault_level, ze = get_supply_params()
    circuits = get_circuits_input(earthing, ze)

    if not circuits:
        print("No circuits entered.")
        sys.exit()

    calculator = BS7671Calculator()
    print("\nCalculating circuits...")
    print("-" * 110)
    print(f"{'Circuit':<15} | {'Ib (A)':<7} | {'Cable':<14} | {'Iz (A)':<7} | {'Device':<24} | {'% VD':<6} | {'Result'}")
    print("-" * 110)

    results = []
    for spec in circuits:
        outcome = calculator.try_calculate_circuit(spec, fault_level)
        if not outcome.ok:
            print(f"{spec.name:<15} | ERROR ({outcome.error_field}): {outcome.error}")
            continue

        res = outcome.result
        results.append(res)
        verdict = "PASS" if res.passed else "FAIL (!)"
        print(f"{spec.name:<15} | {spec.design_current:<7.1f} | {res.cable.label:<14} | {res.cable.derated_capacity:<7.1f} | "
              f"{res.device.label:<24} | {res.voltage_drop.drop_percent:<6.2f} | {verdict}")
        for note in res.recommendations:
            print(f"{'':<15}   - {note}")

    print("-" * 110)

    if results:
        ask = input("\nExport schedule to Excel? (y/n): ").lower()
        if ask == 'y':
            filename = f"Schedule_BS7671_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
            export_to_excel(results, filename)
            print(f"\n[INFO] Excel written: {filename}")


if __name__ == "__main__":
    main()
