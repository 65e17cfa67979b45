import unittest

from aiogram.types import InlineKeyboardMarkup

from relaybot.db.models import Settings
from tests.helpers import ADMIN_ID, STAFF_CHAT_ID, RelayBotTestCase, make_message

USER_ID = 7001


class TestCommands(RelayBotTestCase):
    async def test_start_without_settings(self) -> None:
        await self.process(message=make_message(1, chat_id=USER_ID, user_id=USER_ID, text='/start'))

        self.assertEqual(
            self.fake_bot.sent('send_message'),
            [{'chat_id': USER_ID, 'text': 'please configure the bot with /settings first'}],
        )

    async def test_start_sends_info_then_welcome(self) -> None:
        await self.db.save_settings(Settings(welcome_words='welcome!', bot_info='I relay messages'))

        await self.process(message=make_message(2, chat_id=USER_ID, user_id=USER_ID, text='/start'))

        self.assertEqual(
            [call['text'] for call in self.fake_bot.sent('send_message')],
            ['I relay messages', 'welcome!'],
        )
        self.assertEqual(await self.db.list_messages(), [])

    async def test_settings_menu_for_admin(self) -> None:
        await self.db.save_settings(Settings(thanks='ty', forward_to_chat_id=STAFF_CHAT_ID))

        await self.process(message=make_message(3, chat_id=ADMIN_ID, user_id=ADMIN_ID, text='/settings'))

        sent = self.fake_bot.sent('send_message')
        self.assertEqual(len(sent), 1)
        self.assertTrue(sent[0]['text'].startswith('change settings\n'))
        self.assertIn(f'forward to: {STAFF_CHAT_ID}', sent[0]['text'])
        markup = sent[0]['reply_markup']
        self.assertIsInstance(markup, InlineKeyboardMarkup)
        self.assertEqual(
            [row[0].callback_data for row in markup.inline_keyboard],
            ['change_welcome_words', 'change_bot_info', 'change_thanks', 'change_forward_to_chat_id', 'change_done'],
        )

    async def test_admin_commands_ignore_other_users(self) -> None:
        for command in ('/settings', '/getchatid'):
            with self.subTest(command=command):
                await self.process(message=make_message(4, chat_id=USER_ID, user_id=USER_ID, text=command))
        self.assertEqual(self.fake_bot.calls, [])

    async def test_getchatid_in_group(self) -> None:
        await self.process(message=make_message(
            5, chat_id=STAFF_CHAT_ID, user_id=ADMIN_ID, text='/getchatid', chat_type='supergroup',
        ))

        self.assertEqual(self.fake_bot.sent('send_message'), [{'chat_id': STAFF_CHAT_ID, 'text': str(STAFF_CHAT_ID)}])

    async def test_help_lists_commands(self) -> None:
        await self.db.save_settings(Settings(bot_info='Relay bot'))

        await self.process(message=make_message(6, chat_id=USER_ID, user_id=USER_ID, text='/help'))

        text = self.fake_bot.sent('send_message')[0]['text']
        lines = text.splitlines()
        self.assertEqual(lines[0], 'Relay bot')
        self.assertIn('/start start use bot', lines)
        self.assertIn('/getchatid get chat id', lines)

    async def test_unknown_command_sends_nothing(self) -> None:
        await self.process(message=make_message(7, chat_id=USER_ID, user_id=USER_ID, text='/frobnicate'))

        self.assertEqual(self.fake_bot.calls, [])
        self.assertEqual(await self.db.list_messages(), [])


if __name__ == '__main__':
    unittest.main()
