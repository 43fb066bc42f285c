"""Mixed ledger workload scenario.

Combines the receiving and issuance journeys with weights that model a
working day on a production site. This is the recommended scenario for
load baseline testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.issuance import DirectIssuanceJourney, FinishedGoodsJourney, PickingListJourney
from loadtests.scenarios.receiving import BatchReturnJourney, DeliveryJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Receiving (40%):
    - Deliveries: most common write operation
    - Batched returns: occasional

    Issuance (45%):
    - Direct issuance: production draw-downs
    - Picking lists: kitted work orders

    Finished goods (15%):
    - Reservations for customer orders
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        DeliveryJourney: 6,
        BatchReturnJourney: 2,
        DirectIssuanceJourney: 5,
        PickingListJourney: 4,
        FinishedGoodsJourney: 3,
    }
