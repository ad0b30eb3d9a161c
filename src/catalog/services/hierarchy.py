"""Разрешение цепочки головных организаций клиента."""

import logging

from catalog.adapters.repositories import ICustomerRepository
from catalog.domain.models import Customer

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5


class CustomerHierarchyResolver:
    """Обход цепочки родительских клиентов (филиал -> сеть -> ...).

    Обход итеративный и ограничен max_depth. Цикл в данных или ссылка на
    отсутствующего клиента просто обрывают цепочку.
    """

    def __init__(
        self, customers: ICustomerRepository, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> None:
        """Инициализация резолвера."""
        self._customers = customers
        self._max_depth = max(0, max_depth)

    @property
    def max_depth(self) -> int:
        """Максимальная глубина обхода."""
        return self._max_depth

    async def get_parent_chain(self, customer: Customer) -> list[Customer]:
        """Родительские клиенты, начиная с ближайшего."""
        chain: list[Customer] = []
        visited = {customer.id}
        parent_id = customer.parent_customer_id

        while parent_id is not None:
            if len(chain) >= self._max_depth:
                logger.warning(
                    f"Customer hierarchy of {customer.id} exceeds depth {self._max_depth}, truncated"
                )
                break
            if parent_id in visited:
                logger.warning(
                    f"Cycle in customer hierarchy of {customer.id} at parent {parent_id}"
                )
                break

            parent = await self._customers.get(parent_id)
            if parent is None:
                logger.warning(
                    f"Customer {customer.id} references missing parent {parent_id}"
                )
                break

            visited.add(parent_id)
            chain.append(parent)
            parent_id = parent.parent_customer_id

        return chain

    async def get_ancestor_ids(self, customer: Customer) -> list[int]:
        """ID родительских клиентов, начиная с ближайшего."""
        return [parent.id for parent in await self.get_parent_chain(customer)]
