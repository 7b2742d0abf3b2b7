"""
Referral graph traversal.

The tree is stored as one sponsor pointer per account. Upward walks read
one row per hop; downward walks read one level per query.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.account import Account
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.utils.exceptions import AccountNotFound, InvalidState

# Upper bound for walks to the root
MAX_TREE_DEPTH = 10_000


@dataclass
class TreeNode:
    """Account in a downline tree."""

    account_id: int
    level: int
    children: list["TreeNode"] = field(default_factory=list)

    def iter_nodes(self) -> list["TreeNode"]:
        """All descendants (breadth-first), excluding self."""
        result: list[TreeNode] = []
        queue = list(self.children)
        while queue:
            node = queue.pop(0)
            result.append(node)
            queue.extend(node.children)
        return result

    @property
    def size(self) -> int:
        """Number of descendants."""
        return len(self.iter_nodes())


class ReferralGraph:
    """Upward and downward traversal of the referral tree."""

    def __init__(self, session: AsyncSession) -> None:
        self.accounts = AccountRepository(session)

    async def require_account(self, account_id: int) -> int | None:
        """
        Sponsor ID of an existing account.

        Raises:
            AccountNotFound: If the account does not exist
        """
        exists, sponsor_id = await self.accounts.get_sponsor_id(account_id)
        if not exists:
            raise AccountNotFound(f"Account {account_id} not found")
        return sponsor_id

    async def sponsor_chain(
        self, account_id: int, max_depth: int
    ) -> AsyncIterator[tuple[int, Account]]:
        """
        Yield ancestors nearest first as (level, account).

        Stops at a root or after max_depth ancestors. Registration never
        attaches an account below its own descendant, so every walk ends.

        Args:
            account_id: Starting account
            max_depth: Max number of ancestors

        Raises:
            AccountNotFound: If the starting account does not exist
        """
        sponsor_id = await self.require_account(account_id)

        level = 0
        while sponsor_id is not None and level < max_depth:
            sponsor = await self.accounts.get_by_id(sponsor_id)
            if sponsor is None:
                return
            level += 1
            yield level, sponsor
            sponsor_id = sponsor.sponsor_id

    async def ensure_acyclic(self, account_id: int, sponsor_id: int) -> None:
        """
        Reject an attachment whose sponsor chain contains the account.

        Raises:
            InvalidState: If attaching would create a cycle
        """
        if account_id == sponsor_id:
            raise InvalidState("Account cannot sponsor itself")
        async for _, ancestor in self.sponsor_chain(sponsor_id, MAX_TREE_DEPTH):
            if ancestor.id == account_id:
                raise InvalidState(
                    f"Account {account_id} is already an ancestor of {sponsor_id}"
                )

    async def subtree(self, account_id: int, max_depth: int) -> TreeNode:
        """
        Breadth-first downline tree.

        Args:
            account_id: Root account
            max_depth: Max levels below the root

        Returns:
            Root node with nested children
        """
        await self.require_account(account_id)

        root = TreeNode(account_id=account_id, level=0)
        frontier = {account_id: root}
        for level in range(1, max_depth + 1):
            children = await self.accounts.get_children(list(frontier))
            if not children:
                break
            next_frontier: dict[int, TreeNode] = {}
            for child_id, parent_id in children:
                node = TreeNode(account_id=child_id, level=level)
                frontier[parent_id].children.append(node)
                next_frontier[child_id] = node
            frontier = next_frontier
        return root

    async def downline_levels(
        self, account_id: int, max_depth: int
    ) -> list[list[int]]:
        """Downline account IDs grouped by level (index 0 = level 1)."""
        tree = await self.subtree(account_id, max_depth)
        levels: list[list[int]] = []
        for node in tree.iter_nodes():
            while len(levels) < node.level:
                levels.append([])
            levels[node.level - 1].append(node.account_id)
        return levels
