# tracker/seed_data.py
import random
from datetime import date, timedelta
from typing import List, Optional

from .models.entities import (
    Client,
    ExternalLink,
    LinkType,
    Part,
    POStatus,
    Project,
    PurchaseOrder,
    Shipment,
    ShipmentVocabulary,
    Supplier,
    WorkStatus,
    SHIPMENT_VOCABULARIES,
    Snapshot,
    new_id,
)
from .services.derivation import project_progress, parts_progress


def generate_sample_data(
    vocabulary: Optional[ShipmentVocabulary] = None,
    seed: Optional[int] = None,
) -> Snapshot:
    """
    Build a synthetic, referentially consistent dataset.

    Used when neither the remote store nor the local blob can provide data,
    and by the "generate sample data" action. Every shipment points at a part
    of its own purchase order, and project progress is derived from the
    purchase orders exactly as the store would derive it.
    """
    vocabulary = vocabulary or SHIPMENT_VOCABULARIES["freight"]
    rng = random.Random(seed)
    today = date.today()

    # === Clients ===
    clients_raw = [
        {"name": "Tata Motors", "contact_person": "Anil Mehta", "email": "anil.mehta@tatamotors.example", "phone": "+91 22 6665 8282", "location": "Pune"},
        {"name": "Mahindra Automotive", "contact_person": "Priya Nair", "email": "p.nair@mahindra.example", "phone": "+91 22 2490 1441", "location": "Mumbai"},
        {"name": "Hyundai Motor India", "contact_person": "Kim Ji-ho", "email": "jiho.kim@hyundai.example", "phone": "+91 44 6710 5000", "location": "Chennai"},
        {"name": "Ashok Leyland", "contact_person": "R. Subramanian", "email": "r.subramanian@ashokleyland.example", "phone": "+91 44 2220 6000", "location": "Chennai"},
    ]
    clients = [Client(id=new_id(), **c) for c in clients_raw]

    # === Suppliers ===
    suppliers_raw = [
        {"name": "Bosch India", "country": "India", "contact_person": "Vikram Rao", "location": "Bangalore", "rating": 4.5, "on_time_delivery": 94,
         "positive_comments": ["Consistent quality", "Responsive engineering support"], "negative_comments": ["Long quote turnaround"]},
        {"name": "Motherson Sumi", "country": "India", "contact_person": "Neha Gupta", "location": "Delhi", "rating": 4.0, "on_time_delivery": 88,
         "positive_comments": ["Competitive pricing"], "negative_comments": ["Occasional labelling errors"]},
        {"name": "Continental AG", "country": "Germany", "contact_person": "Jonas Weber", "location": "Hanover", "rating": 4.7, "on_time_delivery": 97,
         "positive_comments": ["Excellent documentation", "Reliable lead times"], "negative_comments": []},
        {"name": "Hitachi Astemo", "country": "Japan", "contact_person": "Sato Haruki", "location": "Tokyo", "rating": 4.2, "on_time_delivery": 90,
         "positive_comments": ["Precise tolerances"], "negative_comments": ["Expensive air freight"]},
        {"name": "Panasonic Energy", "country": "Korea", "contact_person": "Lee Min-jun", "location": "Seoul", "rating": 3.6, "on_time_delivery": 78,
         "positive_comments": ["Good battery cell yield"], "negative_comments": ["Missed two deadlines", "Slow RMA handling"]},
    ]
    suppliers = [Supplier(id=new_id(), email=f"orders@{s['name'].split()[0].lower()}.example", **s) for s in suppliers_raw]

    # === Projects ===
    projects_raw = [
        {"name": "Chakan Body Shop Line", "client": 0, "location": "Pune", "status": WorkStatus.IN_PROGRESS, "start": -120, "end": 90, "pm": "Rahul Deshpande",
         "description": "Robotic welding cells for the new SUV platform"},
        {"name": "Nashik Paint Shop Upgrade", "client": 1, "location": "Nashik", "status": WorkStatus.DELAYED, "start": -200, "end": 15, "pm": "Sneha Kulkarni",
         "description": "Replacement of electrostatic paint booths"},
        {"name": "Sriperumbudur Battery Pack Assembly", "client": 2, "location": "Chennai", "status": WorkStatus.IN_PROGRESS, "start": -60, "end": 180, "pm": "Arjun Iyer",
         "description": "EV battery module assembly and end-of-line testing"},
        {"name": "Hosur Axle Test Rig", "client": 3, "location": "Hosur", "status": WorkStatus.COMPLETED, "start": -300, "end": -20, "pm": "Meera Krishnan",
         "description": "Endurance test rigs for heavy commercial vehicle axles"},
        {"name": "Pithampur Conveyor Retrofit", "client": None, "location": "Indore", "status": WorkStatus.PENDING, "start": 30, "end": 240, "pm": "Karan Malhotra",
         "description": "Overhead conveyor retrofit for the trim line"},
    ]
    projects = [
        Project(
            id=new_id(),
            name=p["name"],
            client_id=clients[p["client"]].id if p["client"] is not None else None,
            location=p["location"],
            status=p["status"].value,
            progress=100 if p["status"] == WorkStatus.COMPLETED else 0,
            start_date=(today + timedelta(days=p["start"])).isoformat(),
            end_date=(today + timedelta(days=p["end"])).isoformat(),
            project_manager=p["pm"],
            description=p["description"],
        )
        for p in projects_raw
    ]

    # === Purchase orders (project index, supplier index, parts) ===
    part_names = [
        "Servo Motor", "Welding Gun", "PLC Controller", "Safety Light Curtain", "Conveyor Roller",
        "Paint Atomizer", "Cell Module Housing", "Torque Sensor", "Hydraulic Actuator", "Wiring Harness",
    ]
    po_plan = [(0, 0), (0, 2), (1, 1), (1, 4), (2, 4), (2, 3), (3, 2), (4, 0)]

    purchase_orders: List[PurchaseOrder] = []
    for n, (pi, si) in enumerate(po_plan, start=1):
        project = projects[pi]
        if project.status == WorkStatus.COMPLETED.value:
            part_status, part_range, po_status = WorkStatus.COMPLETED.value, (100, 100), POStatus.COMPLETED.value
        elif project.status == WorkStatus.PENDING.value:
            part_status, part_range, po_status = WorkStatus.PENDING.value, (0, 0), POStatus.ACTIVE.value
        elif project.status == WorkStatus.DELAYED.value:
            part_status, part_range, po_status = WorkStatus.DELAYED.value, (10, 60), POStatus.DELAYED.value
        else:
            part_status, part_range, po_status = WorkStatus.IN_PROGRESS.value, (20, 90), POStatus.ACTIVE.value

        parts = [
            Part(
                id=new_id(),
                name=name,
                quantity=rng.randint(2, 40),
                status=part_status,
                progress=rng.randint(*part_range),
            )
            for name in rng.sample(part_names, rng.randint(1, 3))
        ]
        issued = today - timedelta(days=rng.randint(10, 90))
        purchase_orders.append(
            PurchaseOrder(
                id=new_id(),
                po_number=f"PO-{today.year}-{n:04d}",
                project_id=project.id,
                supplier_id=suppliers[si].id,
                status=po_status,
                deadline=(issued + timedelta(days=rng.randint(30, 120))).isoformat(),
                issued_date=issued.isoformat(),
                parts=parts,
                progress=parts_progress(parts),
                amount=float(sum(p.quantity for p in parts) * rng.randint(800, 5000)),
                description=f"{suppliers[si].name} supply for {project.name}",
            )
        )

    for project in projects:
        derived = project_progress(project.id, purchase_orders)
        if derived is not None:
            project.progress = derived

    # === External links ===
    external_links: List[ExternalLink] = []
    for project in projects[:4]:
        external_links.append(
            ExternalLink(
                id=new_id(),
                type=LinkType.REPORT.value,
                project_id=project.id,
                title=f"{project.name} weekly report",
                url=f"https://reports.example.com/{project.id}",
                date=(today - timedelta(days=rng.randint(0, 14))).isoformat(),
            )
        )
    for po in purchase_orders[:3]:
        external_links.append(
            ExternalLink(
                id=new_id(),
                type=LinkType.TRACKING.value,
                project_id=po.project_id,
                supplier_id=po.supplier_id,
                po_id=po.id,
                title=f"{po.po_number} tracking",
                url=f"https://track.example.com/{po.po_number}",
                date=today.isoformat(),
            )
        )

    # === Shipments ===
    shipments: List[Shipment] = []
    for n, po in enumerate(purchase_orders[:5]):
        part = po.parts[0]
        ship_type = vocabulary.values()[n % len(vocabulary.values())]
        shipped = today - timedelta(days=rng.randint(1, 20))
        if vocabulary.is_ocean(ship_type):
            transport = {
                "container_number": f"MSCU{rng.randint(1000000, 9999999)}",
                "container_size": rng.choice(["20ft", "40ft"]),
                "container_type": rng.choice(["Dry", "High Cube"]),
                "lock_number": f"SL-{rng.randint(10000, 99999)}",
            }
        else:
            transport = {"tracking_number": f"TRK{rng.randint(100000000, 999999999)}"}
        shipments.append(
            Shipment(
                id=new_id(),
                project_id=po.project_id,
                supplier_id=po.supplier_id,
                po_id=po.id,
                part_id=part.id,
                type=ship_type,
                shipped_date=shipped.isoformat(),
                etd_date=shipped.isoformat(),
                eta_date=(shipped + timedelta(days=rng.randint(5, 40))).isoformat(),
                status="In Transit",
                **transport,
            )
        )

    return Snapshot(
        projects=projects,
        clients=clients,
        suppliers=suppliers,
        purchase_orders=purchase_orders,
        external_links=external_links,
        shipments=shipments,
    )
