"""
Ledger Verification Script

Verifies data integrity of the Excel ledger of completed orders.
Run from project root: python scripts/verify.py

Author: Khalil_Bannouri
Version: 4.0.0
"""

from datetime import datetime

import pandas as pd

from app.services.excel_manager import ExcelManager


def verify_ledger() -> bool:
    """Verify the ledger after a simulation run."""
    manager = ExcelManager()

    print("=" * 60)
    print("🔍 LEDGER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {manager.ledger_file}")
    print("=" * 60)

    rows = manager.get_all_orders()
    if not rows:
        print("\n❌ Ledger is empty or missing!")
        print("   Enable EXCEL_EXPORT_ENABLED, start a worker and run: python scripts/simulate.py")
        return False

    df = pd.DataFrame(rows)
    ok = True

    # Statistics
    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    missing = [col for col in ExcelManager.LEDGER_COLUMNS if col not in df.columns]
    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
        ok = False
    else:
        print("\n✅ All ledger columns present")

    # An order completes once, so it is exported once
    duplicates = int(df["order_id"].duplicated().sum())
    if duplicates > 0:
        print(f"⚠️ {duplicates} duplicate order IDs found!")
        ok = False
    else:
        print("✅ No duplicate order IDs")

    not_completed = int((df["status"] != "COMPLETED").sum())
    if not_completed:
        print(f"⚠️ {not_completed} rows are not COMPLETED")
        ok = False

    # total = subtotal + service charge + extras, within rounding
    recomputed = df["subtotal"] + df["service_charge"] + df["extra_charges"]
    drift = (recomputed - df["total_price"]).abs() > 0.015
    if drift.any():
        print(f"⚠️ {int(drift.sum())} rows whose parts do not add up to the total")
        ok = False
    else:
        print("✅ Totals add up")

    take_out_charged = df[(df["pickup_type"] == "Take-Out") & (df["service_charge"] != 0)]
    if len(take_out_charged):
        print(f"⚠️ {len(take_out_charged)} Take-Out rows carry a service charge")
        ok = False

    # Revenue
    print("\n💰 REVENUE:")
    print(f"   Total: ${df['total_price'].sum():.2f}")
    print(f"   Average: ${df['total_price'].mean():.2f}")
    for pickup_type, revenue in df.groupby("pickup_type")["total_price"].sum().items():
        print(f"   {pickup_type}: ${revenue:.2f}")

    # Sample data
    print("\n📋 RECENT ORDERS:")
    print("-" * 60)
    cols = ["order_id", "customer_last_name", "pickup_type", "total_price", "completed_at"]
    print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    raise SystemExit(0 if verify_ledger() else 1)
