#!/usr/bin/env python3
"""
Tests for RoomStore: credentials, memberships, profiles, cascade delete and
the saved-rooms queries.

Run with:
    python -m pytest tests/test_store.py
"""
import json
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from helpers import FakeClock, TmpDirMixin
from santa_rooms.store import RoomStore


class StoreTestCase(TmpDirMixin):

    def setUp(self):
        super().setUp()
        self.clock = FakeClock()
        self.store = self._make()

    def _make(self):
        return RoomStore(self._path('storage'), clock=self.clock)

    def _read(self, name):
        path = os.path.join(self._path('storage'), name)
        if not os.path.exists(path):
            return {}
        with open(path) as f:
            return json.load(f)

    def _create_owned_room(self, join_code='ABC123', admin_code='ADM1',
                           owner_id='p-owner', access_code='ACC1', name='Oficina'):
        self.store.remember_admin(join_code, admin_code, name=name)
        self.store.remember_participant_access(owner_id, access_code)
        self.store.add_participant(join_code, {'id': owner_id, 'name': 'Ana', 'isOwner': True})


# ===========================================================================
# Credentials
# ===========================================================================

class TestCredentials(StoreTestCase):

    def test_admin_round_trip_any_casing(self):
        self.store.remember_admin('abc123', 'adm-one')
        self.assertEqual(self.store.get_admin('ABC123'), 'ADM-ONE')
        self.assertEqual(self.store.get_admin('abc123'), 'ADM-ONE')

    def test_admin_overwrite(self):
        self.store.remember_admin('ABC123', 'ADM1')
        self.store.remember_admin('abc123', 'ADM2')
        self.assertEqual(self.store.get_admin('ABC123'), 'ADM2')
        self.assertEqual(self._read('admin-codes.json'), {'ABC123': 'ADM2'})

    def test_get_admin_miss_returns_none(self):
        self.assertIsNone(self.store.get_admin('NOPE'))
        self.assertIsNone(self.store.get_admin(None))
        self.assertIsNone(self.store.get_admin(''))

    def test_remember_admin_touches_profile(self):
        self.store.remember_admin('abc123', 'ADM1', name='Oficina')
        profile = self.store.get_profile('ABC123')
        self.assertEqual(profile['name'], 'Oficina')
        self.assertEqual(profile['lastViewedAt'], self.clock.now.isoformat())

    def test_remember_admin_ignores_empty_values(self):
        self.store.remember_admin('ABC123', '')
        self.store.remember_admin('', 'ADM1')
        self.assertEqual(self.store.list_administered_groups(), [])
        self.assertIsNone(self.store.get_profile('ABC123'))

    def test_participant_access_round_trip(self):
        self.store.remember_participant_access('p1', 'acc1')
        self.assertEqual(self.store.get_participant_access('p1'), 'ACC1')
        self.store.remember_participant_access('p1', 'ACC2')
        self.assertEqual(self.store.get_participant_access('p1'), 'ACC2')

    def test_participant_access_miss(self):
        self.assertIsNone(self.store.get_participant_access('nobody'))
        self.assertIsNone(self.store.get_participant_access(None))

    def test_forget_admin_keeps_rest_of_room(self):
        self._create_owned_room()
        self.assertTrue(self.store.forget_admin('abc123'))
        self.assertIsNone(self.store.get_admin('ABC123'))
        self.assertEqual(self.store.get_participants('ABC123'), ['p-owner'])
        self.assertIsNotNone(self.store.get_profile('ABC123'))

    def test_corrupt_storage_reads_as_empty(self):
        os.makedirs(self._path('storage'), exist_ok=True)
        for name in ('admin-codes.json', 'participant-codes.json',
                     'group-participants.json', 'group-profiles.json'):
            with open(os.path.join(self._path('storage'), name), 'w') as f:
                f.write('{broken')
        store = self._make()
        self.assertIsNone(store.get_admin('ABC123'))
        self.assertEqual(store.get_participants('ABC123'), [])
        self.assertEqual(store.list_administered_groups(), [])
        self.assertEqual(store.list_participant_links(), [])


# ===========================================================================
# Memberships and profiles
# ===========================================================================

class TestMemberships(StoreTestCase):

    def test_add_participant_is_idempotent(self):
        self.store.add_participant('abc123', 'p1')
        self.store.add_participant('ABC123', 'p1')
        self.assertEqual(self.store.get_participants('abc123'), ['p1'])

    def test_accepts_record(self):
        self.store.add_participant('ABC123', {'id': 'p1', 'name': 'Luis'})
        profile = self.store.get_profile('ABC123')
        self.assertEqual(profile['participants']['p1']['name'], 'Luis')

    def test_bare_id_still_ensures_profile(self):
        self.store.add_participant('ABC123', 'p1')
        profile = self.store.get_profile('ABC123')
        self.assertIsNotNone(profile)
        self.assertEqual(profile['participants'], {})

    def test_multiple_local_identities(self):
        self.store.add_participant('ABC123', 'p1')
        self.store.add_participant('ABC123', 'p2')
        self.assertEqual(sorted(self.store.get_participants('ABC123')), ['p1', 'p2'])

    def test_record_without_id_is_ignored(self):
        self.store.add_participant('ABC123', {'name': 'Nadie'})
        self.assertEqual(self.store.get_participants('ABC123'), [])
        self.assertIsNone(self.store.get_profile('ABC123'))

    def test_get_participants_unknown_room(self):
        self.assertEqual(self.store.get_participants('NOPE'), [])


class TestProfiles(StoreTestCase):

    def test_ensure_profile_creates_empty(self):
        profile = self.store.ensure_profile('abc123')
        self.assertEqual(profile, {'participants': {}})
        self.assertIn('ABC123', self._read('group-profiles.json'))

    def test_ensure_profile_persists_repaired_participants(self):
        os.makedirs(self._path('storage'), exist_ok=True)
        with open(os.path.join(self._path('storage'), 'group-profiles.json'), 'w') as f:
            json.dump({'ABC123': {'name': 'Oficina', 'participants': 'broken'}}, f)
        store = self._make()
        self.assertEqual(store.ensure_profile('ABC123')['participants'], {})
        saved = self._read('group-profiles.json')['ABC123']
        self.assertEqual(saved, {'name': 'Oficina', 'participants': {}})

    def test_ensure_profile_keeps_name(self):
        self.store.touch_group('ABC123', name='Oficina')
        self.assertEqual(self.store.ensure_profile('ABC123')['name'], 'Oficina')

    def test_touch_group_without_name_keeps_name(self):
        self.store.touch_group('ABC123', name='Oficina')
        self.clock.advance()
        self.store.touch_group('ABC123', name='')
        profile = self.store.get_profile('ABC123')
        self.assertEqual(profile['name'], 'Oficina')
        self.assertEqual(profile['lastViewedAt'], self.clock.now.isoformat())

    def test_touch_group_overwrites_name(self):
        self.store.touch_group('ABC123', name='Oficina')
        self.store.touch_group('ABC123', name='Familia')
        self.assertEqual(self.store.get_profile('ABC123')['name'], 'Familia')

    def test_touch_participant_defaults_name(self):
        self.store.touch_participant('ABC123', {'id': 'p1'})
        participant = self.store.get_profile('ABC123')['participants']['p1']
        self.assertEqual(participant['name'], 'Participante')
        self.assertEqual(participant['lastViewedAt'], self.clock.now.isoformat())

    def test_owner_last_writer_wins(self):
        self.store.touch_participant('ABC123', {'id': 'p1', 'isOwner': True})
        self.store.touch_participant('ABC123', {'id': 'p2', 'isOwner': True})
        self.store.touch_participant('ABC123', {'id': 'p3'})
        self.assertEqual(self.store.get_profile('ABC123')['ownerParticipantId'], 'p2')

    def test_get_profile_returns_copy(self):
        self.store.touch_group('ABC123', name='Oficina')
        self.store.get_profile('ABC123')['name'] = 'Changed'
        self.assertEqual(self.store.get_profile('ABC123')['name'], 'Oficina')


# ===========================================================================
# Cascade delete
# ===========================================================================

class TestForgetGroup(StoreTestCase):

    def test_cascade_completeness(self):
        self._create_owned_room()
        self.store.remember_participant_access('p-guest', 'ACC2')
        self.store.add_participant('ABC123', {'id': 'p-guest', 'name': 'Luis'})

        self.store.forget_group('abc123')

        self.assertIsNone(self.store.get_admin('ABC123'))
        self.assertEqual(self.store.get_participants('ABC123'), [])
        self.assertIsNone(self.store.get_profile('ABC123'))
        self.assertIsNone(self.store.get_participant_access('p-owner'))
        self.assertIsNone(self.store.get_participant_access('p-guest'))

    def test_other_rooms_untouched(self):
        self._create_owned_room()
        self._create_owned_room(join_code='XYZ789', admin_code='ADM9',
                                owner_id='p-other', access_code='ACC9')
        self.store.forget_group('ABC123')
        self.assertEqual(self.store.get_admin('XYZ789'), 'ADM9')
        self.assertEqual(self.store.get_participant_access('p-other'), 'ACC9')
        self.assertEqual([g['join_code'] for g in self.store.list_administered_groups()],
                         ['XYZ789'])

    def test_persisted(self):
        self._create_owned_room()
        self.store.forget_group('ABC123')
        store = self._make()
        self.assertIsNone(store.get_admin('ABC123'))
        self.assertIsNone(store.get_profile('ABC123'))
        self.assertEqual(self._read('participant-codes.json'), {})

    def test_idempotent(self):
        self._create_owned_room()
        self._create_owned_room(join_code='XYZ789', admin_code='ADM9',
                                owner_id='p-other', access_code='ACC9')
        self.store.forget_group('ABC123')
        snapshot = [self._read(n) for n in ('admin-codes.json', 'participant-codes.json',
                                            'group-participants.json', 'group-profiles.json')]
        self.store.forget_group('ABC123')
        again = [self._read(n) for n in ('admin-codes.json', 'participant-codes.json',
                                         'group-participants.json', 'group-profiles.json')]
        self.assertEqual(snapshot, again)

    def test_never_remembered_code(self):
        self.store.forget_group('NEVER1')
        self.store.forget_group(None)
        self.assertEqual(self.store.list_administered_groups(), [])


# ===========================================================================
# Queries
# ===========================================================================

class TestListAdministeredGroups(StoreTestCase):

    def test_recency_ordering(self):
        self.store.remember_admin('AAA', 'ADM1')
        self.clock.advance()
        self.store.remember_admin('BBB', 'ADM2')
        self.clock.advance()
        self.store.remember_admin('CCC', 'ADM3')
        codes = [g['join_code'] for g in self.store.list_administered_groups()]
        self.assertEqual(codes, ['CCC', 'BBB', 'AAA'])

    def test_touch_moves_room_to_front(self):
        self.store.remember_admin('AAA', 'ADM1')
        self.clock.advance()
        self.store.remember_admin('BBB', 'ADM2')
        self.clock.advance()
        self.store.touch_group('AAA')
        codes = [g['join_code'] for g in self.store.list_administered_groups()]
        self.assertEqual(codes, ['AAA', 'BBB'])

    def test_owner_resolution(self):
        self._create_owned_room()
        [group] = self.store.list_administered_groups()
        self.assertEqual(group['join_code'], 'ABC123')
        self.assertEqual(group['admin_code'], 'ADM1')
        self.assertEqual(group['name'], 'Oficina')
        self.assertEqual(group['owner_participant_id'], 'p-owner')
        self.assertEqual(group['owner_participant_name'], 'Ana')
        self.assertEqual(group['owner_access_code'], 'ACC1')

    def test_missing_profile_falls_back(self):
        os.makedirs(self._path('storage'), exist_ok=True)
        with open(os.path.join(self._path('storage'), 'admin-codes.json'), 'w') as f:
            json.dump({'ABC123': 'ADM1'}, f)
        [group] = self._make().list_administered_groups()
        self.assertEqual(group['name'], 'Grupo ABC123')
        self.assertIsNone(group['last_viewed_at'])
        self.assertIsNone(group['owner_participant_id'])
        self.assertIsNone(group['owner_access_code'])

    def _write_admin_room(self, profile):
        os.makedirs(self._path('storage'), exist_ok=True)
        with open(os.path.join(self._path('storage'), 'admin-codes.json'), 'w') as f:
            json.dump({'ABC123': 'ADM1'}, f)
        with open(os.path.join(self._path('storage'), 'group-profiles.json'), 'w') as f:
            json.dump({'ABC123': profile}, f)

    def test_malformed_owner_entry_is_ignored(self):
        self._write_admin_room({'ownerParticipantId': 'p1', 'participants': {'p1': 'oops'}})
        [group] = self._make().list_administered_groups()
        self.assertEqual(group['owner_participant_id'], 'p1')
        self.assertIsNone(group['owner_participant_name'])
        self.assertIsNone(group['owner_access_code'])

    def test_non_string_owner_id_is_ignored(self):
        self._write_admin_room({'ownerParticipantId': ['p1'], 'participants': {}})
        [group] = self._make().list_administered_groups()
        self.assertIsNone(group['owner_participant_id'])
        self.assertIsNone(group['owner_participant_name'])
        self.assertIsNone(group['owner_access_code'])

    def test_rooms_without_timestamp_sort_last_in_enumeration_order(self):
        os.makedirs(self._path('storage'), exist_ok=True)
        with open(os.path.join(self._path('storage'), 'admin-codes.json'), 'w') as f:
            json.dump({'OLD1': 'A', 'OLD2': 'B', 'NEW': 'C'}, f)
        with open(os.path.join(self._path('storage'), 'group-profiles.json'), 'w') as f:
            json.dump({'NEW': {'participants': {}, 'lastViewedAt': '2024-11-30T10:00:00Z'},
                       'OLD2': {'participants': {}, 'lastViewedAt': 'not a date'}}, f)
        codes = [g['join_code'] for g in self._make().list_administered_groups()]
        self.assertEqual(codes, ['NEW', 'OLD1', 'OLD2'])


class TestListParticipantLinks(StoreTestCase):

    def test_owner_and_guest_links(self):
        self._create_owned_room()
        self.clock.advance()
        self.store.remember_participant_access('p-guest', 'ACC2')
        self.store.add_participant('XYZ789', {'id': 'p-guest', 'name': 'Luis'})
        links = self.store.list_participant_links()
        self.assertEqual([(l['join_code'], l['participant_id']) for l in links],
                         [('XYZ789', 'p-guest'), ('ABC123', 'p-owner')])
        guest = links[0]
        self.assertEqual(guest['access_code'], 'ACC2')
        self.assertEqual(guest['group_name'], 'Grupo XYZ789')
        self.assertEqual(guest['participant_name'], 'Luis')

    def test_excludes_ids_without_access_code(self):
        self.store.add_participant('ABC123', {'id': 'p1', 'name': 'Ana'})
        self.assertEqual(self.store.list_participant_links(), [])

    def test_falls_back_to_group_timestamp_and_default_name(self):
        self.store.remember_participant_access('p1', 'ACC1')
        self.store.add_participant('ABC123', 'p1')
        [link] = self.store.list_participant_links()
        self.assertEqual(link['participant_name'], 'Participante')
        self.assertEqual(link['last_viewed_at'],
                         self.store.get_profile('ABC123')['lastViewedAt'])

    def test_prefers_participant_timestamp(self):
        self.store.remember_participant_access('p1', 'ACC1')
        self.store.add_participant('ABC123', {'id': 'p1', 'name': 'Ana'})
        stamp = self.clock.now.isoformat()
        self.clock.advance()
        self.store.touch_group('ABC123')
        [link] = self.store.list_participant_links()
        self.assertEqual(link['last_viewed_at'], stamp)


class TestReload(StoreTestCase):

    def test_reload_sees_other_process_writes(self):
        other = self._make()
        other.remember_admin('ABC123', 'ADM1', name='Oficina')
        self.assertIsNone(self.store.get_admin('ABC123'))
        self.store.reload()
        self.assertEqual(self.store.get_admin('ABC123'), 'ADM1')
        self.assertEqual(self.store.list_administered_groups()[0]['name'], 'Oficina')


if __name__ == '__main__':
    unittest.main()
