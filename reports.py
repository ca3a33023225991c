from typing import List

from models import SalesReportLine


class SalesReporter:
    """Read-only aggregation over the order records."""

    def __init__(self, db):
        self.db = db

    async def sales_report(self) -> List[SalesReportLine]:
        pipeline = [
            {"$group": {
                "_id": {"productId": "$productId", "productName": "$productName"},
                "totalUnitsSold": {"$sum": "$quantity"},
                "totalRevenue": {"$sum": {"$multiply": ["$quantity", "$unitPrice"]}},
            }},
            {"$project": {
                "_id": 0,
                "productId": "$_id.productId",
                "productName": "$_id.productName",
                "totalUnitsSold": 1,
                "totalRevenue": 1,
            }},
            # ties broken by product id
            {"$sort": {"totalUnitsSold": -1, "productId": 1}},
        ]

        lines = []
        async for row in self.db.order_items.aggregate(pipeline):
            row["totalRevenue"] = round(row.get("totalRevenue") or 0, 2)
            lines.append(SalesReportLine(**row))
        return lines
